"""HTTP endpoint and connection settings of the pool exporter."""

from __future__ import annotations

import os
from http.server import ThreadingHTTPServer
from typing import Protocol, Union
from urllib.parse import urlsplit

from . import stats_server
from .errors import ExporterError

GRPC_PORT = 10124
METRICS_PATH = "/metrics"
_POD_IP_VARIABLE = "MY_POD_IP"
_FORBIDDEN = set(" \t\r\n/?#@\\")


class _Renderer(Protocol):
    def render(self) -> str: ...


def get_pod_ip() -> str:
    """IP address of this pod; raises ExporterError of kind PodIPError when unset."""
    try:
        return os.environ[_POD_IP_VARIABLE]
    except KeyError:
        raise ExporterError("PodIPError", "Unable to get pod ip") from None


def grpc_endpoint(pod_ip: str) -> str:
    """URI of the io-engine gRPC service on the pod.

    Raises ExporterError of kind InvalidURI when the address cannot form a URI.
    """
    authority = f"{pod_ip}:{GRPC_PORT}"
    if not pod_ip or _FORBIDDEN.intersection(pod_ip):
        raise ExporterError("InvalidURI", f"invalid authority: {authority!r}")
    parts = urlsplit(f"https://{authority}")
    try:
        port = parts.port
    except ValueError as exc:
        raise ExporterError("InvalidURI", str(exc)) from exc
    if not parts.hostname or port != GRPC_PORT or parts.netloc != authority:
        raise ExporterError("InvalidURI", f"invalid authority: {authority!r}")
    return f"https://{authority}/"


def create_server(
    collector: _Renderer, address: Union[str, tuple[str, int]]
) -> ThreadingHTTPServer:
    """Bind a server answering GET /metrics with the collector's metrics.

    Raises SocketBindingFailure if the address cannot be bound.
    """
    return stats_server.create_server(collector, address, METRICS_PATH)