"""In-memory counters of pool and volume events."""

from __future__ import annotations

import copy
import enum
import json
import threading
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional

from .constants import EVENT_STATS_DATA
from .errors import (
    EventDeserializationError,
    ReferenceConfigMapNoData,
    ReferencedKeyNotPresent,
)

_U32_MAX = 2**32 - 1


class EventAction(enum.Enum):
    """What happened to a resource."""

    CREATE = "create"
    DELETE = "delete"
    UNKNOWN_ACTION = "unknown"


class EventCategory(enum.Enum):
    """Kind of resource an event is about."""

    POOL = "pool"
    VOLUME = "volume"
    UNKNOWN_CATEGORY = "unknown"


def _count(section: Any, key: str) -> int:
    if not isinstance(section, Mapping):
        raise TypeError(f"expected an object holding {key!r}")
    if key not in section:
        raise KeyError(f"missing field `{key}`")
    value = section[key]
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"field `{key}` must be an integer")
    if not 0 <= value <= _U32_MAX:
        raise ValueError(f"field `{key}` is out of range: {value}")
    return value


@dataclass
class PoolStats:
    """Pool creation and deletion counts."""

    pool_created: int = 0
    pool_deleted: int = 0

    def update_counter(self, action: EventAction) -> None:
        if action is EventAction.CREATE:
            self.pool_created += 1
        elif action is EventAction.DELETE:
            self.pool_deleted += 1


@dataclass
class VolumeStats:
    """Volume creation and deletion counts."""

    volume_created: int = 0
    volume_deleted: int = 0

    def update_counter(self, action: EventAction) -> None:
        if action is EventAction.CREATE:
            self.volume_created += 1
        elif action is EventAction.DELETE:
            self.volume_deleted += 1


@dataclass
class EventSet:
    """Counters for every tracked kind of event."""

    pool: PoolStats = field(default_factory=PoolStats)
    volume: VolumeStats = field(default_factory=VolumeStats)

    @classmethod
    def from_event_store(cls, data: Optional[Mapping[str, str]]) -> "EventSet":
        """Decode the event set held in a config map's data.

        Raises ReferenceConfigMapNoData when there is no data,
        ReferencedKeyNotPresent when the stats key is missing and
        EventDeserializationError when the stored document is invalid.
        """
        if data is None:
            raise ReferenceConfigMapNoData()
        if EVENT_STATS_DATA not in data:
            raise ReferencedKeyNotPresent(EVENT_STATS_DATA)
        value = data[EVENT_STATS_DATA]
        try:
            return cls.from_dict(json.loads(value))
        except (ValueError, TypeError, KeyError) as exc:
            raise EventDeserializationError(value, exc) from exc

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "EventSet":
        """Build from a decoded document; every counter must be present."""
        if not isinstance(data, Mapping):
            raise TypeError("expected an object holding the event set")
        if "pool" not in data:
            raise KeyError("missing field `pool`")
        if "volume" not in data:
            raise KeyError("missing field `volume`")
        pool, volume = data["pool"], data["volume"]
        return cls(
            pool=PoolStats(
                pool_created=_count(pool, "pool_created"),
                pool_deleted=_count(pool, "pool_deleted"),
            ),
            volume=VolumeStats(
                volume_created=_count(volume, "volume_created"),
                volume_deleted=_count(volume, "volume_deleted"),
            ),
        )

    def to_dict(self) -> dict[str, dict[str, int]]:
        return {
            "pool": {
                "pool_created": self.pool.pool_created,
                "pool_deleted": self.pool.pool_deleted,
            },
            "volume": {
                "volume_created": self.volume.volume_created,
                "volume_deleted": self.volume.volume_deleted,
            },
        }

    def inc_counter(self, category: EventCategory, action: EventAction) -> None:
        """Count one event; unknown categories are ignored."""
        if category is EventCategory.POOL:
            self.pool.update_counter(action)
        elif category is EventCategory.VOLUME:
            self.volume.update_counter(action)


class EventCache:
    """Thread-safe holder of the current event counters."""

    def __init__(self, events: Optional[EventSet] = None) -> None:
        self._events = copy.deepcopy(events) if events is not None else EventSet()
        self._lock = threading.Lock()

    def record(self, category: EventCategory, action: EventAction) -> None:
        """Count one event."""
        with self._lock:
            self._events.inc_counter(category, action)

    def snapshot(self) -> EventSet:
        """Independent copy of the current counters."""
        with self._lock:
            return copy.deepcopy(self._events)


def store_events(
    cache: EventCache, messages: Iterable[tuple[EventCategory, EventAction]]
) -> int:
    """Record every (category, action) message into the cache; returns how many."""
    processed = 0
    for category, action in messages:
        cache.record(category, action)
        processed += 1
    return processed