"""Config map documents that persist the event counters."""

from __future__ import annotations

import json
from typing import Any

from .constants import EVENT_STATS_DATA, EVENT_STORE, EVENT_STORE_LABLE_KEY
from .errors import SerializeEventError
from .events_cache import EventCache, EventSet


def config_map_name(release_name: str) -> str:
    """Name of the event store config map for a release."""
    return f"{release_name}-{EVENT_STORE}"


def _stats_data(events: EventSet) -> dict[str, str]:
    try:
        value = json.dumps(events.to_dict(), separators=(",", ":"))
    except (TypeError, ValueError) as exc:
        raise SerializeEventError(exc) from exc
    return {EVENT_STATS_DATA: value}


def init_config_map_data() -> dict[str, str]:
    """Config map data holding an empty event set."""
    return _stats_data(EventSet())


def config_map_data(cache: EventCache) -> dict[str, str]:
    """Config map data holding the cache's current counters."""
    return _stats_data(cache.snapshot())


def new_config_map(release_name: str) -> dict[str, Any]:
    """A new, labelled event store config map with empty counters."""
    return {
        "apiVersion": "v1",
        "kind": "ConfigMap",
        "metadata": {
            "name": config_map_name(release_name),
            "labels": {EVENT_STORE_LABLE_KEY: EVENT_STORE},
        },
        "data": init_config_map_data(),
    }