"""Assembling the call-home report from the cluster and the control plane."""

from __future__ import annotations

import hashlib
import logging
from typing import Any, Mapping, Optional, Protocol, Sequence

import requests

from .constants import PRODUCT
from .errors import ObsError
from .report_models import EventData, Pools, Replicas, Report, Volumes, event_stats

logger = logging.getLogger(__name__)

_U8_MASK = 0xFF


class K8sClient(Protocol):
    def get_node_len(self) -> int: ...


class ApiClient(Protocol):
    def get_nodes(self) -> Sequence[Mapping[str, Any]]: ...

    def get_pools(self) -> Sequence[Mapping[str, Any]]: ...

    def get_volumes(self) -> Sequence[Mapping[str, Any]]: ...

    def get_replicas(self) -> Sequence[Mapping[str, Any]]: ...


def hash_value(text: str) -> str:
    """Hex SHA-256 digest of the text."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def generate_report(
    k8s_client: K8sClient,
    api_client: ApiClient,
    k8s_cluster_id: str,
    deploy_namespace: str,
    product_version: str,
    aggregator_url: str,
    session: Optional[requests.Session] = None,
) -> Report:
    """Build a report; each source that fails is logged and left at its default."""
    report = Report(
        product_name=PRODUCT,
        k8s_cluster_id=k8s_cluster_id,
        deploy_namespace=deploy_namespace,
        product_version=product_version,
    )

    event_data = EventData()
    try:
        event_data = EventData.from_record(event_stats(aggregator_url, session))
    except ObsError as exc:
        logger.error("%r", exc)

    try:
        report.k8s_node_count = k8s_client.get_node_len() & _U8_MASK
    except Exception as exc:
        logger.error("%r", exc)

    try:
        report.storage_node_count = len(api_client.get_nodes()) & _U8_MASK
    except Exception as exc:
        logger.error("%r", exc)

    try:
        report.pools = Pools.from_pools(api_client.get_pools(), event_data)
    except Exception as exc:
        logger.error("%r", exc)

    volumes: Optional[list[Mapping[str, Any]]] = None
    try:
        volumes = list(api_client.get_volumes())
    except Exception as exc:
        logger.error("%r", exc)
    if volumes is not None:
        report.volumes = Volumes.from_volumes(volumes, event_data)

    try:
        report.replicas = Replicas.from_volumes(len(api_client.get_replicas()), volumes)
    except Exception as exc:
        logger.error("%r", exc)

    return report