from __future__ import annotations

import logging
import threading
from typing import Callable

import requests

from dbmetrics.core import decode
from dbmetrics.core.models import (
    Application,
    ClusterMetrics,
    ExecutorInfo,
    SparkJobInfo,
    StageInfo,
)
from dbmetrics.core.transport import HttpTransport, Transport, retrying_session

logger = logging.getLogger(__name__)

METRICS_PATH = "/metrics/json"
APPLICATIONS_PATH = "/api/v1/applications"
APP_EXECUTORS_PATH = APPLICATIONS_PATH + "/{app_id}/executors"
APP_JOBS_PATH = APPLICATIONS_PATH + "/{app_id}/jobs"
APP_STAGES_PATH = APPLICATIONS_PATH + "/{app_id}/stages"


def spark_proxy_url(endpoint: str, org_id: str, cluster_id: str, port: int) -> str:
    """Return the driver proxy base URL of the Spark UI for one cluster."""
    return f"{endpoint.rstrip('/')}/driver-proxy-api/o/{org_id}/{cluster_id}/{port}"


class SparkApi:
    """Adapter around the Spark REST API of a single cluster's driver."""

    def __init__(self, transport: Transport) -> None:
        self.transport = transport

    def _get(self, path: str) -> bytes:
        logger.debug("spark api request: %s", path)
        return self.transport.get(path)

    def metrics(self) -> ClusterMetrics:
        return decode.decode_cluster_metrics(self._get(METRICS_PATH))

    def applications(self) -> list[Application]:
        return decode.decode_applications(self._get(APPLICATIONS_PATH))

    def app_executors(self, app_id: str) -> list[ExecutorInfo]:
        return decode.decode_executors(self._get(APP_EXECUTORS_PATH.format(app_id=app_id)))

    def app_jobs(self, app_id: str) -> list[SparkJobInfo]:
        return decode.decode_spark_jobs(self._get(APP_JOBS_PATH.format(app_id=app_id)))

    def app_stages(self, app_id: str) -> list[StageInfo]:
        return decode.decode_stages(self._get(APP_STAGES_PATH.format(app_id=app_id)))


class SparkApiFactory:
    """Build a `SparkApi` bound to one cluster's driver proxy."""

    def __init__(
        self,
        endpoint: str,
        org_id: str,
        port: int,
        headers: Callable[[], dict[str, str]],
        session: requests.Session | None = None,
    ) -> None:
        self.endpoint = endpoint
        self.org_id = org_id
        self.port = port
        self.headers = headers
        self.session = session
        self._local = threading.local()

    def _session(self) -> requests.Session:
        """Return the explicit session, else one retrying session per thread."""
        if self.session is not None:
            return self.session
        session = getattr(self._local, "session", None)
        if session is None:
            session = retrying_session()
            self._local.session = session
        return session

    def __call__(self, cluster_id: str) -> SparkApi:
        base_url = spark_proxy_url(self.endpoint, self.org_id, cluster_id, self.port)
        return SparkApi(HttpTransport(base_url, self.headers, session=self._session()))
