"""Prometheus counters for the event statistics."""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass, field
from typing import Iterable, Mapping

from .constants import ACTION, CREATED, DELETED, POOL_STATS, VOLUME_STATS
from .events_cache import EventCache


def _escape_help(text: str) -> str:
    return text.replace("\\", "\\\\").replace("\n", "\\n")


def _escape_label(text: str) -> str:
    return text.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")


def _format_value(value: float) -> str:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


@dataclass
class MetricFamily:
    """A named metric with its samples, each a (labels, value) pair."""

    name: str
    help: str
    kind: str = "counter"
    samples: list[tuple[Mapping[str, str], float]] = field(default_factory=list)

    def render(self) -> str:
        """Prometheus text exposition of this family."""
        lines = [
            f"# HELP {self.name} {_escape_help(self.help)}",
            f"# TYPE {self.name} {self.kind}",
        ]
        for labels, value in self.samples:
            label_text = ",".join(
                f'{key}="{_escape_label(val)}"' for key, val in labels.items()
            )
            selector = f"{self.name}{{{label_text}}}" if label_text else self.name
            lines.append(f"{selector} {_format_value(value)}")
        return "".join(f"{line}\n" for line in lines)


def render_families(families: Iterable[MetricFamily]) -> str:
    """Merge families of the same name, sort them and render them as text."""
    merged: dict[str, MetricFamily] = {}
    for family in families:
        target = merged.get(family.name)
        if target is None:
            merged[family.name] = MetricFamily(
                family.name, family.help, family.kind, list(family.samples)
            )
        else:
            target.samples.extend(family.samples)
    rendered = []
    for name in sorted(merged):
        family = merged[name]
        family.samples.sort(key=lambda sample: sorted(sample[0].items()))
        rendered.append(family.render())
    return "".join(rendered)


class Metrics(enum.Enum):
    """Metric categories exposed by the stats collector."""

    POOL = "pool"
    VOLUME = "volume"
    UNKNOWN = ""

    def __str__(self) -> str:
        return self.value


class StatsCollector:
    """Exposes the cached event counters as Prometheus counters."""

    def __init__(self, cache: EventCache) -> None:
        self.cache = cache

    def collect(self) -> list[MetricFamily]:
        """Volume families first, then pool families, created before deleted."""
        events = self.cache.snapshot()
        counters = [
            (Metrics.VOLUME, VOLUME_STATS, CREATED, events.volume.volume_created),
            (Metrics.VOLUME, VOLUME_STATS, DELETED, events.volume.volume_deleted),
            (Metrics.POOL, POOL_STATS, CREATED, events.pool.pool_created),
            (Metrics.POOL, POOL_STATS, DELETED, events.pool.pool_deleted),
        ]
        return [
            MetricFamily(str(metric), help_text, "counter", [({ACTION: action}, float(count))])
            for metric, help_text, action, count in counters
        ]

    def render(self) -> str:
        """Prometheus text exposition of all collected families."""
        return render_families(self.collect())