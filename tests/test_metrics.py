from obsstats.constants import ACTION, CREATED, DELETED, POOL, POOL_STATS, VOLUME, VOLUME_STATS
from obsstats.events_cache import EventCache, EventSet, PoolStats, VolumeStats
from obsstats.metrics import MetricFamily, Metrics, StatsCollector, render_families


def _collector(pool=(0, 0), volume=(0, 0)):
    return StatsCollector(EventCache(EventSet(PoolStats(*pool), VolumeStats(*volume))))


def test_metrics_names_match_constants():
    families = _collector().collect()
    names = [family.name for family in families]
    assert names == [str(Metrics.VOLUME)] * 2 + [str(Metrics.POOL)] * 2
    assert names == [VOLUME, VOLUME, POOL, POOL]
    assert str(Metrics.UNKNOWN) == ""


def test_collect_order_and_values():
    families = _collector(pool=(5, 6), volume=(3, 4)).collect()
    assert [family.name for family in families] == [VOLUME, VOLUME, POOL, POOL]
    assert [family.samples[0] for family in families] == [
        ({ACTION: CREATED}, 3.0),
        ({ACTION: DELETED}, 4.0),
        ({ACTION: CREATED}, 5.0),
        ({ACTION: DELETED}, 6.0),
    ]
    assert [family.help for family in families] == [
        VOLUME_STATS,
        VOLUME_STATS,
        POOL_STATS,
        POOL_STATS,
    ]
    assert all(family.kind == "counter" for family in families)


def test_render_merges_and_sorts_families():
    text = _collector(pool=(1, 2), volume=(3, 0)).render()
    assert text.count(f"# HELP {VOLUME} ") == 1
    assert text.count(f"# HELP {POOL} ") == 1
    assert text.index(f"# HELP {POOL} ") < text.index(f"# HELP {VOLUME} ")
    assert f'{VOLUME}{{{ACTION}="{CREATED}"}} 3\n' in text
    assert f'{POOL}{{{ACTION}="{DELETED}"}} 2\n' in text
    assert f"# TYPE {VOLUME} counter\n" in text


def test_render_reflects_cache_changes():
    cache = EventCache()
    collector = StatsCollector(cache)
    before = collector.render()
    from obsstats.events_cache import EventAction, EventCategory

    cache.record(EventCategory.POOL, EventAction.CREATE)
    after = collector.render()
    assert f'{POOL}{{{ACTION}="{CREATED}"}} 0\n' in before
    assert f'{POOL}{{{ACTION}="{CREATED}"}} 1\n' in after


def test_family_render_escapes_labels():
    family = MetricFamily("x", "help", "gauge", [({"k": 'a"b\\c'}, 1.0)])
    assert family.render().splitlines()[-1] == 'x{k="a\\"b\\\\c"} 1'


def test_family_render_fractional_and_unlabelled():
    family = MetricFamily("y", "help", "gauge", [({}, 1.5)])
    assert family.render().splitlines() == ["# HELP y help", "# TYPE y gauge", "y 1.5"]


def test_render_families_sorts_samples_by_labels():
    first = MetricFamily("z", "help", "counter", [({ACTION: DELETED}, 2.0)])
    second = MetricFamily("z", "help", "counter", [({ACTION: CREATED}, 1.0)])
    lines = render_families([first, second]).splitlines()
    assert lines[2].startswith(f'z{{{ACTION}="{CREATED}"}}')
    assert lines[3].startswith(f'z{{{ACTION}="{DELETED}"}}')
    assert len(first.samples) == 1