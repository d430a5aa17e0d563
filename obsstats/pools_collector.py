"""Prometheus gauges describing the cached storage pools."""

from __future__ import annotations

import logging
import os

from .errors import ExporterError
from .metrics import MetricFamily, render_families
from .pool_cache import PoolCache

logger = logging.getLogger(__name__)

_SUBSYSTEM = "disk_pool"
_NODE_NAME_VARIABLE = "MY_NODE_NAME"

_GAUGES = (
    ("total_size_bytes", "Total size of the pool in bytes", "capacity"),
    ("used_size_bytes", "Used size of the pool in bytes", "used"),
    ("committed_size_bytes", "Committed size of the pool in bytes", "committed"),
    ("status", "Status of the pool", "state"),
)


def get_node_name() -> str:
    """Name of the node this exporter runs on, taken from the pod spec.

    Raises ExporterError of kind GetNodeError when it is not set.
    """
    try:
        return os.environ[_NODE_NAME_VARIABLE]
    except KeyError:
        raise ExporterError("GetNodeError", "Unable to get node name") from None


class PoolsCollector:
    """Exposes size, usage, commitment and status of every cached pool."""

    def __init__(self, cache: PoolCache) -> None:
        self.cache = cache

    def collect(self) -> list[MetricFamily]:
        """One family per gauge and pool, pool by pool.

        Returns nothing when the node name is unknown.
        """
        pools = self.cache.pools()
        try:
            node_name = get_node_name()
        except ExporterError as exc:
            logger.error("Unable to get node name: %s", exc)
            return []
        families = []
        for pool in pools:
            labels = {"node": node_name, "name": pool.name}
            for suffix, help_text, attribute in _GAUGES:
                families.append(
                    MetricFamily(
                        f"{_SUBSYSTEM}_{suffix}",
                        help_text,
                        "gauge",
                        [(dict(labels), float(getattr(pool, attribute)))],
                    )
                )
        return families

    def render(self) -> str:
        """Prometheus text exposition of all collected families."""
        return render_families(self.collect())