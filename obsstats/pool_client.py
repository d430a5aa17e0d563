"""Pool data fetched from the io-engine, for the pool exporter."""

from __future__ import annotations

import enum
import functools
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Mapping, Sequence

from .errors import ExporterError


@functools.total_ordering
class ApiVersion(enum.Enum):
    """Version of the io-engine API; later versions compare greater."""

    V0 = "v0"
    V1 = "v1"

    @classmethod
    def parse(cls, text: str) -> "ApiVersion":
        """Parse the lower-case name of a version; raises ValueError otherwise."""
        for member in cls:
            if member.value == text:
                return member
        raise ValueError(f"unknown api version: {text!r}")

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, ApiVersion):
            return NotImplemented
        order = list(ApiVersion)
        return order.index(self) < order.index(other)

    def __str__(self) -> str:
        return self.value


def latest_version(versions: Iterable[ApiVersion]) -> ApiVersion:
    """Newest of the given versions, or V0 when there are none."""
    return max(versions, default=ApiVersion.V0)


@dataclass(frozen=True)
class Pool:
    """A storage pool as reported by the io-engine."""

    name: str
    disks: list[str] = field(default_factory=list)
    used: int = 0
    capacity: int = 0
    state: int = 0
    committed: int = 0

    @classmethod
    def from_v0(cls, data: Mapping[str, Any]) -> "Pool":
        """Build from a v0 pool; that API reports no commitment, so used stands in."""
        return cls(
            name=str(data["name"]),
            disks=list(data["disks"]),
            used=int(data["used"]),
            capacity=int(data["capacity"]),
            state=int(data["state"]),
            committed=int(data["used"]),
        )

    @classmethod
    def from_v1(cls, data: Mapping[str, Any]) -> "Pool":
        """Build from a v1 pool."""
        return cls(
            name=str(data["name"]),
            disks=list(data["disks"]),
            used=int(data["used"]),
            capacity=int(data["capacity"]),
            state=int(data["state"]),
            committed=int(data["committed"]),
        )


@dataclass(frozen=True)
class Timeouts:
    """Connect and request timeouts, in seconds."""

    connect: float
    request: float


FetchPools = Callable[[], Sequence[Mapping[str, Any]]]


class PoolClient:
    """Lists pools through a fetch call speaking the given API version."""

    def __init__(self, api_version: ApiVersion, fetch: FetchPools) -> None:
        self.api_version = api_version
        self._fetch = fetch

    def list_pools(self) -> list[Pool]:
        """Fetch and convert the pools.

        Raises ExporterError of kind GrpcResponseError when the call fails and
        DeserializationError when a pool cannot be converted.
        """
        try:
            raw = self._fetch()
        except ExporterError:
            raise
        except Exception as exc:
            raise ExporterError("GrpcResponseError", str(exc)) from exc
        convert = Pool.from_v0 if self.api_version is ApiVersion.V0 else Pool.from_v1
        try:
            return [convert(item) for item in raw]
        except (KeyError, TypeError, ValueError) as exc:
            raise ExporterError("DeserializationError", str(exc)) from exc