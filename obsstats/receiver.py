"""HTTP client for the call-home receiver endpoint."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

import requests
from requests.adapters import HTTPAdapter, Retry

from .constants import PRODUCT, RECEIVER_ENDPOINT, release_version
from .errors import ReceiverError

_MAX_RETRIES = 3
_TRANSIENT_STATUSES = (408, 429, 500, 502, 503, 504)


def _default_session() -> requests.Session:
    retry = Retry(
        total=_MAX_RETRIES,
        backoff_factor=1,
        status_forcelist=_TRANSIENT_STATUSES,
        allowed_methods=None,
        raise_on_status=False,
    )
    session = requests.Session()
    session.verify = False
    adapter = HTTPAdapter(max_retries=retry)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    return session


def _utc_now_text() -> str:
    now = datetime.now(timezone.utc)
    return f"{now:%Y-%m-%d %H:%M:%S.%f} UTC"


class Receiver:
    """Sends encrypted reports to the receiver API."""

    def __init__(
        self,
        cluster_id: object,
        session: Optional[requests.Session] = None,
        url: str = RECEIVER_ENDPOINT,
    ) -> None:
        self.cluster_id = str(cluster_id)
        self.session = session if session is not None else _default_session()
        self.url = url

    def headers(self) -> dict[str, str]:
        """Headers sent with each report."""
        return {
            "CAStor-Cluster-Id": self.cluster_id,
            "CAStor-Version": release_version(),
            "CAStor-Report-Type": "health_report",
            "CAStor-Product": PRODUCT,
            "CAStor-Time": _utc_now_text(),
            "Content-Type": "text/PGP; charset=binary",
        }

    def post(self, body: bytes) -> requests.Response:
        """POST the body; raises ReceiverError if the request cannot be made."""
        try:
            return self.session.post(self.url, headers=self.headers(), data=body)
        except requests.RequestException as exc:
            raise ReceiverError(exc) from exc