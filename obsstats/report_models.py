"""Models for the call-home report and the event statistics it carries."""

from __future__ import annotations

import enum
import json
import math
import re
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional, Sequence

import requests
from requests.adapters import HTTPAdapter, Retry

from .constants import ACTION
from .errors import ResponseBodyFailure, StatsFetchFailure

_U32_MAX = 2**32 - 1
_FETCH_TIMEOUT_SECONDS = 30
_FETCH_MAX_RETRIES = 20
_TRANSIENT_STATUSES = (408, 429, 500, 502, 503, 504)


def max_value(values: Iterable[int]) -> int:
    """Largest value, or 0 when there are none."""
    return max(values, default=0)


def min_value(values: Iterable[int]) -> int:
    """Smallest value, or 0 when there are none."""
    return min(values, default=0)


def mean_value(values: Sequence[int]) -> int:
    """Mean of the values, truncated to an integer; 0 when there are none."""
    count = len(values)
    total = 0.0
    for value in values:
        total += value / count
    return int(total)


def percentile(values: Iterable[int], pct: int) -> int:
    """Linearly interpolated percentile, truncated to an integer; 0 when empty."""
    ordered = sorted(values)
    if not ordered:
        return 0
    span = len(ordered) - 1
    exact = pct * span / 100.0
    index = (pct * span) // 100
    fraction = exact - index
    if fraction > 0.0:
        return int(ordered[index] + fraction * (ordered[index + 1] - ordered[index]))
    return ordered[index]


@dataclass
class Percentiles:
    """Values at the 50th, 75th and 90th percentiles."""

    percentile_50: int = 0
    percentile_75: int = 0
    percentile_90: int = 0

    @classmethod
    def from_values(cls, values: Iterable[int]) -> "Percentiles":
        items = list(values)
        return cls(
            percentile_50=percentile(items, 50),
            percentile_75=percentile(items, 75),
            percentile_90=percentile(items, 90),
        )

    def to_dict(self) -> dict[str, int]:
        return {
            "50%": self.percentile_50,
            "75%": self.percentile_75,
            "90%": self.percentile_90,
        }


def _add_nonzero(target: dict[str, Any], **counters: int) -> dict[str, Any]:
    target.update({key: value for key, value in counters.items() if value != 0})
    return target


@dataclass
class EventData:
    """Counts of pool and volume creation and deletion events."""

    volume_created: int = 0
    volume_deleted: int = 0
    pool_created: int = 0
    pool_deleted: int = 0

    @classmethod
    def from_record(cls, record: "EventsRecord") -> "EventData":
        def count(resource: Resource, action: Action) -> int:
            found = record.counter(resource, action)
            return 0 if found is None else found

        return cls(
            volume_created=count(Resource.VOLUME, Action.CREATED),
            volume_deleted=count(Resource.VOLUME, Action.DELETED),
            pool_created=count(Resource.POOL, Action.CREATED),
            pool_deleted=count(Resource.POOL, Action.DELETED),
        )


@dataclass
class Volumes:
    """Volume count, size statistics and event counts."""

    count: int = 0
    min_size_in_bytes: int = 0
    mean_size_in_bytes: int = 0
    max_size_in_bytes: int = 0
    capacity_percentiles_in_bytes: Percentiles = field(default_factory=Percentiles)
    created: int = 0
    deleted: int = 0

    @classmethod
    def from_volumes(
        cls, volumes: Iterable[Mapping[str, Any]], event_data: EventData
    ) -> "Volumes":
        """Build from REST volume objects, each holding spec.size."""
        sizes = [volume["spec"]["size"] for volume in volumes]
        return cls(
            count=len(sizes),
            max_size_in_bytes=max_value(sizes),
            min_size_in_bytes=min_value(sizes),
            mean_size_in_bytes=mean_value(sizes),
            capacity_percentiles_in_bytes=Percentiles.from_values(sizes),
            created=event_data.volume_created,
            deleted=event_data.volume_deleted,
        )

    def to_dict(self) -> dict[str, Any]:
        result = {
            "count": self.count,
            "minSizeInBytes": self.min_size_in_bytes,
            "meanSizeInBytes": self.mean_size_in_bytes,
            "maxSizeInBytes": self.max_size_in_bytes,
            "capacityPercentilesInBytes": self.capacity_percentiles_in_bytes.to_dict(),
        }
        return _add_nonzero(result, created=self.created, deleted=self.deleted)


@dataclass
class Pools:
    """Pool count, capacity statistics and event counts."""

    count: int = 0
    max_size_in_bytes: int = 0
    min_size_in_bytes: int = 0
    mean_size_in_bytes: int = 0
    capacity_percentiles_in_bytes: Percentiles = field(default_factory=Percentiles)
    created: int = 0
    deleted: int = 0

    @classmethod
    def from_pools(
        cls, pools: Iterable[Mapping[str, Any]], event_data: EventData
    ) -> "Pools":
        """Build from REST pool objects; pools without a state are left out."""
        sizes = [pool["state"]["capacity"] for pool in pools if pool.get("state")]
        return cls(
            count=len(sizes),
            max_size_in_bytes=max_value(sizes),
            min_size_in_bytes=min_value(sizes),
            mean_size_in_bytes=mean_value(sizes),
            capacity_percentiles_in_bytes=Percentiles.from_values(sizes),
            created=event_data.pool_created,
            deleted=event_data.pool_deleted,
        )

    def to_dict(self) -> dict[str, Any]:
        result = {
            "count": self.count,
            "maxSizeInBytes": self.max_size_in_bytes,
            "minSizeInBytes": self.min_size_in_bytes,
            "meanSizeInBytes": self.mean_size_in_bytes,
            "capacityPercentilesInBytes": self.capacity_percentiles_in_bytes.to_dict(),
        }
        return _add_nonzero(result, created=self.created, deleted=self.deleted)


@dataclass
class Replicas:
    """Replica count and replicas-per-volume percentiles."""

    count: int = 0
    count_per_volume_percentiles: Percentiles = field(default_factory=Percentiles)

    @classmethod
    def from_volumes(
        cls,
        replica_count: int,
        volumes: Optional[Iterable[Mapping[str, Any]]],
    ) -> "Replicas":
        replicas = cls(count=replica_count)
        if volumes is not None:
            per_volume = [volume["spec"]["num_replicas"] for volume in volumes]
            replicas.count_per_volume_percentiles = Percentiles.from_values(per_volume)
        return replicas

    def to_dict(self) -> dict[str, Any]:
        return {
            "count": self.count,
            "countPerVolumePercentiles": self.count_per_volume_percentiles.to_dict(),
        }


@dataclass
class Versions:
    """Versions of the product components."""

    control_plane_version: str = ""

    def to_dict(self) -> dict[str, str]:
        return {"controlPlaneVersion": self.control_plane_version}


@dataclass
class Report:
    """Everything sent in one call-home payload."""

    k8s_cluster_id: str = ""
    k8s_node_count: int = 0
    product_name: str = ""
    product_version: str = ""
    deploy_namespace: str = ""
    storage_node_count: int = 0
    pools: Pools = field(default_factory=Pools)
    volumes: Volumes = field(default_factory=Volumes)
    replicas: Replicas = field(default_factory=Replicas)
    versions: Versions = field(default_factory=Versions)

    def to_dict(self) -> dict[str, Any]:
        return {
            "k8sClusterId": self.k8s_cluster_id,
            "k8sNodeCount": self.k8s_node_count,
            "productName": self.product_name,
            "productVersion": self.product_version,
            "deployNamespace": self.deploy_namespace,
            "storageNodeCount": self.storage_node_count,
            "pools": self.pools.to_dict(),
            "volumes": self.volumes.to_dict(),
            "replicas": self.replicas.to_dict(),
            "versions": self.versions.to_dict(),
        }

    def to_json(self) -> bytes:
        """Compact JSON encoding of the report."""
        return json.dumps(self.to_dict(), separators=(",", ":")).encode("utf-8")


class Resource(enum.Enum):
    """Resource a metric sample refers to."""

    UNKNOWN = "unknown"
    POOL = "pool"
    VOLUME = "volume"

    @classmethod
    def parse(cls, text: str) -> "Resource":
        if text in ("pool", "volume"):
            return cls(text)
        return cls.UNKNOWN


class Action(enum.Enum):
    """Action a metric sample counts."""

    UNKNOWN = "unknown"
    CREATED = "created"
    DELETED = "deleted"

    @classmethod
    def parse(cls, text: str) -> "Action":
        if text in ("created", "deleted"):
            return cls(text)
        return cls.UNKNOWN


@dataclass(frozen=True)
class Sample:
    """One sample of Prometheus text output."""

    metric: str
    labels: Mapping[str, str]
    value: float
    kind: str = "untyped"

    @property
    def counter_value(self) -> int:
        """Value as an unsigned 32-bit count; 0 unless the metric is a counter."""
        if self.kind != "counter" or math.isnan(self.value) or self.value <= 0:
            return 0
        if self.value >= _U32_MAX:
            return _U32_MAX
        return int(self.value)


_TYPE_RE = re.compile(r"^#\s*TYPE\s+(\S+)\s+(\S+)")
_SAMPLE_RE = re.compile(
    r"^(?P<name>[a-zA-Z_:][a-zA-Z0-9_:]*)"
    r"(?:\{(?P<labels>[^}]*)\})?"
    r"\s+(?P<value>\S+)(?:\s+(?P<timestamp>\S+))?\s*$"
)
_LABEL_RE = re.compile(r'\s*([a-zA-Z_][a-zA-Z0-9_]*)\s*=\s*"((?:[^"\\]|\\.)*)"\s*,?')
_ESCAPES = {"\\\\": "\\", '\\"': '"', "\\n": "\n"}
_SUFFIXES = ("_bucket", "_sum", "_count")


def _unescape(text: str) -> str:
    return re.sub(r"\\.", lambda m: _ESCAPES.get(m.group(0), m.group(0)), text)


def _kind_of(name: str, types: Mapping[str, str]) -> str:
    if name in types:
        return types[name]
    for suffix in _SUFFIXES:
        if name.endswith(suffix):
            base_kind = types.get(name[: -len(suffix)])
            if base_kind in ("histogram", "summary"):
                return base_kind
    return "untyped"


def parse_samples(text: str) -> list[Sample]:
    """Parse Prometheus text exposition output; malformed lines are skipped."""
    types: dict[str, str] = {}
    samples: list[Sample] = []
    for raw in text.splitlines():
        line = raw.strip()
        if not line:
            continue
        if line.startswith("#"):
            declared = _TYPE_RE.match(line)
            if declared:
                types[declared.group(1)] = declared.group(2).lower()
            continue
        match = _SAMPLE_RE.match(line)
        if not match:
            continue
        try:
            value = float(match.group("value"))
        except ValueError:
            continue
        labels = {
            key: _unescape(val)
            for key, val in _LABEL_RE.findall(match.group("labels") or "")
        }
        name = match.group("name")
        samples.append(Sample(name, labels, value, _kind_of(name, types)))
    return samples


@dataclass
class EventsRecord:
    """Samples scraped from the stats aggregator."""

    samples: list[Sample] = field(default_factory=list)

    def counter(self, resource: Resource, action: Action) -> Optional[int]:
        """Counter of the first sample matching resource and action, or None."""
        for sample in self.samples:
            if (
                Resource.parse(sample.metric) == resource
                and Action.parse(sample.labels.get(ACTION, "")) == action
            ):
                return sample.counter_value
        return None


def _retrying_session() -> requests.Session:
    retry = Retry(
        total=_FETCH_MAX_RETRIES,
        backoff_factor=1,
        status_forcelist=_TRANSIENT_STATUSES,
        allowed_methods=None,
        raise_on_status=False,
    )
    session = requests.Session()
    adapter = HTTPAdapter(max_retries=retry)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    return session


def event_stats(url: str, session: Optional[requests.Session] = None) -> EventsRecord:
    """Fetch and parse the event stats from the aggregator.

    Raises StatsFetchFailure if the request fails and ResponseBodyFailure if
    the body cannot be read.
    """
    http = session if session is not None else _retrying_session()
    try:
        response = http.get(url, timeout=_FETCH_TIMEOUT_SECONDS)
    except requests.RequestException as exc:
        raise StatsFetchFailure() from exc
    try:
        body = response.text
    except (requests.RequestException, UnicodeDecodeError) as exc:
        raise ResponseBodyFailure() from exc
    return EventsRecord(parse_samples(body))