"""Shared constants and environment-driven settings."""

from __future__ import annotations

import os
from datetime import timedelta
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

PRODUCT = "Mayastor"
HELM_RELEASE_NAME_LABEL = "openebs.io/release"
DEFAULT_RELEASE_NAME = "mayastor"
DEFAULT_STATS_AGGREGATOR_URL = "http://mayastor-obs-callhome-stats:9090/stats"
API_REST_LABEL_SELECTOR = "app=api-rest"
EVENT_STORE_LABLE_KEY = "app"
EVENT_STORE = "event-store"
EVENT_STATS_DATA = "stats"
VOLUME_STATS = "Volume stats"
POOL_STATS = "Pool stats"
ACTION = "action"
CREATED = "created"
DELETED = "deleted"
VOLUME = "volume"
POOL = "pool"
PATCH_PARAM_FILED_MANAGER = "events_store_configmap"
DEFAULT_MBUS_URL = "nats://mayastor-nats:4222"
DEFAULT_NAMESPACE = "mayastor"
RECEIVER_ENDPOINT = "https://openebs.phonehome.datacore.com/openebs/report"

DEFAULT_ENCRYPTION_DIR_PATH = "./"
DEFAULT_ENCRYPTION_KEY_FILEPATH = "./public.gpg"
CALL_HOME_FREQUENCY_IN_HOURS = 24

_ENCRYPTION_DIR_KEY = "ENCRYPTION_DIR"
_KEY_FILEPATH_KEY = "KEY_FILEPATH"


def encryption_dir() -> Path:
    """Directory for temporary encryption files, from ENCRYPTION_DIR or the default.

    Raises ValueError if the variable is set to something that is not an existing directory.
    """
    value = os.environ.get(_ENCRYPTION_DIR_KEY)
    if value is None:
        return Path(DEFAULT_ENCRYPTION_DIR_PATH)
    path = Path(value)
    if not path.is_dir():
        raise ValueError(
            f'validation failed for {_ENCRYPTION_DIR_KEY} value "{value}": '
            "path must exist and must be that of a directory"
        )
    return path


def key_filepath() -> Path:
    """Path to the encryption key, from KEY_FILEPATH or the default.

    Raises ValueError if the variable is set to something that is not an existing file.
    """
    value = os.environ.get(_KEY_FILEPATH_KEY)
    if value is None:
        return Path(DEFAULT_ENCRYPTION_KEY_FILEPATH)
    path = Path(value)
    if not path.is_file():
        raise ValueError(
            f'validation failed for {_KEY_FILEPATH_KEY} value "{value}": '
            "path must exist and must be that of a file"
        )
    return path


def call_home_frequency() -> timedelta:
    """Interval between two call-home transmissions."""
    return timedelta(hours=CALL_HOME_FREQUENCY_IN_HOURS)


def release_version() -> str:
    """Version of the installed package, or "unknown" when it is not installed."""
    try:
        return version("obsstats")
    except PackageNotFoundError:
        return "unknown"