"""Cached pool data refreshed periodically for the pool exporter."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Iterable, Optional, Protocol, Union

from .errors import ExporterError
from .pool_client import Pool

logger = logging.getLogger(__name__)

DEFAULT_METRICS_ENDPOINT = "0.0.0.0:9502"
DEFAULT_POLLING_TIME = 300.0


@dataclass(frozen=True)
class ExporterConfig:
    """Where metrics are served and how often pools are polled, in seconds."""

    metrics_endpoint: Union[str, tuple[str, int]] = DEFAULT_METRICS_ENDPOINT
    polling_time: float = DEFAULT_POLLING_TIME


class _PoolLister(Protocol):
    def list_pools(self) -> list[Pool]: ...


class PoolCache:
    """Thread-safe holder of the latest pool list."""

    def __init__(self) -> None:
        self._pools: list[Pool] = []
        self._lock = threading.Lock()

    def pools(self) -> list[Pool]:
        """Copy of the cached pools."""
        with self._lock:
            return list(self._pools)

    def set_pools(self, pools: Iterable[Pool]) -> None:
        """Replace the cached pools."""
        items = list(pools)
        with self._lock:
            self._pools = items

    def invalidate(self) -> None:
        """Drop all cached pools."""
        with self._lock:
            self._pools = []


def refresh_pools(cache: PoolCache, client: _PoolLister) -> list[Pool]:
    """Fetch pools into the cache, emptying it when the fetch fails."""
    try:
        pools = client.list_pools()
    except ExporterError as exc:
        logger.error("Error getting pools data, invalidating pools cache: %s", exc)
        cache.invalidate()
        return []
    logger.debug("Updated pool cache with latest metrics")
    cache.set_pools(pools)
    return pools


def store_pool_data(
    cache: PoolCache,
    client: _PoolLister,
    config: ExporterConfig,
    stop: Optional[threading.Event] = None,
) -> int:
    """Refresh the cache every polling interval until stop is set.

    Returns the number of refreshes made.
    """
    event = stop if stop is not None else threading.Event()
    refreshes = 0
    while True:
        refresh_pools(cache, client)
        refreshes += 1
        if event.wait(config.polling_time):
            return refreshes