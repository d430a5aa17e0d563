"""Error types raised across the package."""

from __future__ import annotations

import json


class ObsError(Exception):
    """Base class for all errors raised by this package."""


class K8sResourceError(ObsError):
    """A Kubernetes client call or its JSON decoding failed."""

    def __init__(self, source: BaseException) -> None:
        self.source = source
        if isinstance(source, (json.JSONDecodeError, TypeError, ValueError)):
            message = f"Json Parse Error : {source}"
        else:
            message = f"K8Client Error: {source}"
        super().__init__(message)


class ReceiverError(ObsError):
    """Building or using the receiver HTTP client failed."""

    def __init__(self, source: BaseException) -> None:
        self.source = source
        super().__init__(f"HTTP client error: {source}")


class EncryptError(ObsError):
    """Encrypting a report failed, during serialisation or file access."""

    def __init__(self, source: BaseException) -> None:
        self.source = source
        if isinstance(source, OSError):
            message = f"file io error: {source}"
        else:
            message = f"error during JSON marshalling: {source}"
        super().__init__(message)


class StatsFetchFailure(ObsError):
    """Fetching the event stats failed."""

    def __init__(self) -> None:
        super().__init__("Error while getting the stats")


class ResponseBodyFailure(ObsError):
    """Reading a response body failed."""

    def __init__(self) -> None:
        super().__init__("Error while getting the response body")


class PrometheusParseFailure(ObsError):
    """Prometheus text output could not be parsed."""

    def __init__(self, source: object) -> None:
        self.source = source
        super().__init__(f"Error while parsing prometheus output {source} ")


class ReferenceConfigMapNoData(ObsError):
    """The reference config map carries no data."""

    def __init__(self) -> None:
        super().__init__("No .data found for the reference config map")


class ReferencedKeyNotPresent(ObsError):
    """A required key is missing from the config map."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"Referenced key not present in config map: {key}")


class EventDeserializationError(ObsError):
    """A stored event document could not be decoded."""

    def __init__(self, event: str, source: object) -> None:
        self.event = event
        self.source = source
        super().__init__(f"Error in deserializing event {event} Error {source}")


class SerializeEventError(ObsError):
    """An event set could not be serialised."""

    def __init__(self, source: object) -> None:
        self.source = source
        super().__init__(f"Failed to serialize event struct: {source}")


class SocketBindingFailure(ObsError):
    """Binding the listening socket failed."""

    def __init__(self, source: object) -> None:
        self.source = source
        super().__init__(f"Error while binding socket {source} ")


EXPORTER_ERROR_KINDS = (
    "GrpcResponseError",
    "GetNodeError",
    "InvalidURI",
    "DeserializationError",
    "PodIPError",
    "GrpcClientError",
)


class ExporterError(ObsError):
    """An error from the pool exporter, tagged with its kind."""

    def __init__(self, kind: str, message: str) -> None:
        if kind not in EXPORTER_ERROR_KINDS:
            raise ValueError(f"unknown exporter error kind: {kind!r}")
        self.kind = kind
        self.message = message
        super().__init__(f"{kind}: {message}")