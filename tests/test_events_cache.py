import json
import threading

import pytest

from obsstats.constants import EVENT_STATS_DATA
from obsstats.errors import (
    EventDeserializationError,
    ReferenceConfigMapNoData,
    ReferencedKeyNotPresent,
)
from obsstats.events_cache import (
    EventAction,
    EventCache,
    EventCategory,
    EventSet,
    PoolStats,
    VolumeStats,
    store_events,
)


def test_pool_stats_counts_create_and_delete():
    stats = PoolStats()
    stats.update_counter(EventAction.CREATE)
    stats.update_counter(EventAction.CREATE)
    stats.update_counter(EventAction.DELETE)
    assert (stats.pool_created, stats.pool_deleted) == (2, 1)


def test_unknown_action_leaves_counts():
    pool = PoolStats()
    volume = VolumeStats()
    pool.update_counter(EventAction.UNKNOWN_ACTION)
    volume.update_counter(EventAction.UNKNOWN_ACTION)
    assert pool == PoolStats()
    assert volume == VolumeStats()


def test_volume_stats_counts_delete():
    stats = VolumeStats()
    stats.update_counter(EventAction.DELETE)
    assert (stats.volume_created, stats.volume_deleted) == (0, 1)


def test_inc_counter_routes_by_category():
    events = EventSet()
    events.inc_counter(EventCategory.POOL, EventAction.CREATE)
    events.inc_counter(EventCategory.VOLUME, EventAction.DELETE)
    events.inc_counter(EventCategory.UNKNOWN_CATEGORY, EventAction.CREATE)
    assert events.pool == PoolStats(pool_created=1)
    assert events.volume == VolumeStats(volume_deleted=1)


def test_dict_round_trip():
    events = EventSet(PoolStats(3, 4), VolumeStats(5, 6))
    assert EventSet.from_dict(events.to_dict()) == events


def test_from_event_store_reads_stats_key():
    events = EventSet(PoolStats(1, 2), VolumeStats(7, 0))
    data = {EVENT_STATS_DATA: json.dumps(events.to_dict())}
    assert EventSet.from_event_store(data) == events


def test_from_event_store_without_data():
    with pytest.raises(ReferenceConfigMapNoData):
        EventSet.from_event_store(None)


def test_from_event_store_without_key():
    with pytest.raises(ReferencedKeyNotPresent) as info:
        EventSet.from_event_store({"other": "{}"})
    assert info.value.key == EVENT_STATS_DATA


def test_from_event_store_with_invalid_json():
    with pytest.raises(EventDeserializationError) as info:
        EventSet.from_event_store({EVENT_STATS_DATA: "not json"})
    assert info.value.event == "not json"


@pytest.mark.parametrize(
    "document",
    [
        {"pool": {"pool_created": 0, "pool_deleted": 0}},
        {
            "pool": {"pool_created": 0},
            "volume": {"volume_created": 0, "volume_deleted": 0},
        },
        {
            "pool": {"pool_created": -1, "pool_deleted": 0},
            "volume": {"volume_created": 0, "volume_deleted": 0},
        },
        {
            "pool": {"pool_created": "1", "pool_deleted": 0},
            "volume": {"volume_created": 0, "volume_deleted": 0},
        },
    ],
)
def test_from_event_store_rejects_bad_documents(document):
    with pytest.raises(EventDeserializationError):
        EventSet.from_event_store({EVENT_STATS_DATA: json.dumps(document)})


def test_snapshot_is_independent_copy():
    cache = EventCache(EventSet(PoolStats(1, 0), VolumeStats()))
    snapshot = cache.snapshot()
    snapshot.pool.pool_created = 99
    assert cache.snapshot().pool.pool_created == 1


def test_cache_does_not_share_initial_events():
    initial = EventSet()
    cache = EventCache(initial)
    cache.record(EventCategory.VOLUME, EventAction.CREATE)
    assert initial.volume.volume_created == 0
    assert cache.snapshot().volume.volume_created == 1


def test_store_events_records_all_messages():
    cache = EventCache()
    messages = [
        (EventCategory.POOL, EventAction.CREATE),
        (EventCategory.POOL, EventAction.DELETE),
        (EventCategory.VOLUME, EventAction.CREATE),
        (EventCategory.UNKNOWN_CATEGORY, EventAction.CREATE),
    ]
    assert store_events(cache, iter(messages)) == len(messages)
    snapshot = cache.snapshot()
    assert snapshot.pool == PoolStats(1, 1)
    assert snapshot.volume == VolumeStats(1, 0)


def test_concurrent_records_are_all_counted():
    cache = EventCache()
    threads_count, per_thread = 4, 250

    def worker():
        for _ in range(per_thread):
            cache.record(EventCategory.POOL, EventAction.CREATE)

    threads = [threading.Thread(target=worker) for _ in range(threads_count)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    assert cache.snapshot().pool.pool_created == threads_count * per_thread