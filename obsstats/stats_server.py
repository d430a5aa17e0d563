"""HTTP endpoint serving the event statistics."""

from __future__ import annotations

import ipaddress
import logging
import socket
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Protocol, Union
from urllib.parse import urlsplit

from .errors import SocketBindingFailure

logger = logging.getLogger(__name__)

DEFAULT_METRICS_ENDPOINT = "0.0.0.0:9090"
DEFAULT_PATH = "/stats"


class _Renderer(Protocol):
    def render(self) -> str: ...


class _StatsServer(ThreadingHTTPServer):
    daemon_threads = True
    allow_reuse_port = False


class _StatsServerV6(_StatsServer):
    address_family = socket.AF_INET6


def parse_address(text: str) -> tuple[str, int]:
    """Parse "ip:port" or "[ipv6]:port" into a (host, port) pair.

    Raises ValueError when the text is not a socket address.
    """
    host, sep, port_text = text.rpartition(":")
    if not sep or not host or not port_text.isdigit():
        raise ValueError(f"invalid socket address: {text!r}")
    port = int(port_text)
    if port > 65535:
        raise ValueError(f"invalid port in socket address: {text!r}")
    bracketed = host.startswith("[") and host.endswith("]")
    if bracketed:
        host = host[1:-1]
    try:
        ip = ipaddress.ip_address(host)
    except ValueError as exc:
        raise ValueError(f"invalid socket address: {text!r}") from exc
    if (ip.version == 6) != bracketed:
        raise ValueError(f"invalid socket address: {text!r}")
    return host, port


def create_server(
    collector: _Renderer,
    address: Union[str, tuple[str, int]],
    path: str = DEFAULT_PATH,
) -> ThreadingHTTPServer:
    """Bind a server that answers GET on path with the collector's metrics.

    Raises SocketBindingFailure if the address cannot be bound.
    """
    host, port = parse_address(address) if isinstance(address, str) else address

    class _Handler(BaseHTTPRequestHandler):
        def do_GET(self) -> None:  # noqa: N802
            if urlsplit(self.path).path != path:
                self.send_error(404)
                return
            body = collector.render().encode("utf-8")
            self.send_response(200)
            self.send_header("Content-Type", "text/plain")
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            self.wfile.write(body)

        def log_message(self, format: str, *args: object) -> None:  # noqa: A002
            logger.info(format, *args)

    server_class = _StatsServerV6 if ":" in host else _StatsServer
    try:
        server = server_class((host, port), _Handler)
    except OSError as exc:
        raise SocketBindingFailure(exc) from exc
    logger.info("configured at %s", path)
    return server