"""HTTP transport used by the API adapters.

The transport performs one authenticated GET against a configured base URL
and returns the raw body. It does not interpret paths or bodies. Transient
upstream failures (throttling, gateway errors, dropped connections) are
retried with exponential backoff by the session's `urllib3` retry policy;
anything still failing afterwards is raised as `TransportError`.
"""

from __future__ import annotations

import logging
from typing import Callable, Protocol

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from dbmetrics.core.errors import TransportError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30
DEFAULT_RETRIES = 3
DEFAULT_BACKOFF_FACTOR = 0.5
RETRY_STATUSES = (429, 502, 503, 504)


class Transport(Protocol):
    """Interface for raw authenticated GET requests."""

    def get(self, path: str) -> bytes:
        """Return the raw body of GET `path` relative to the base URL."""
        ...


def retrying_session(
    retries: int = DEFAULT_RETRIES,
    backoff_factor: float = DEFAULT_BACKOFF_FACTOR,
) -> requests.Session:
    """
    Return a session that retries idempotent GETs on transient failures.

    Retries cover connection errors and the statuses in RETRY_STATUSES,
    honoring `Retry-After`. When retries run out the last response is
    returned as is, so the caller sees the real status and body.
    """
    retry = Retry(
        total=retries,
        backoff_factor=backoff_factor,
        status_forcelist=RETRY_STATUSES,
        allowed_methods=frozenset({"GET"}),
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry)
    session = requests.Session()
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


class HttpTransport:
    """`requests` based transport with per-request auth headers."""

    def __init__(
        self,
        base_url: str,
        headers: Callable[[], dict[str, str]],
        session: requests.Session | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.headers = headers
        self.session = session or retrying_session()
        self.timeout = timeout

    def get(self, path: str) -> bytes:
        url = f"{self.base_url}{path}"
        logger.debug("GET %s", url)
        try:
            resp = self.session.get(url, headers=self.headers(), timeout=self.timeout)
        except requests.RequestException as exc:
            raise TransportError(path, str(exc)) from exc
        if resp.status_code >= 400:
            raise TransportError(path, _error_detail(resp), status=resp.status_code)
        return resp.content


def _error_detail(resp: requests.Response) -> str:
    """Return a short description of an error response."""
    text = (resp.text or "").strip()
    if not text:
        return resp.reason or "request failed"
    return text if len(text) <= 200 else f"{text[:197]}..."
