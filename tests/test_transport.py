import threading
from http.server import BaseHTTPRequestHandler, HTTPServer
from types import SimpleNamespace

import pytest
import requests

from dbmetrics.core.adapters.spark_api import SparkApiFactory, spark_proxy_url
from dbmetrics.core.adapters.workspace_api import WorkspaceApi
from dbmetrics.core.auth import AuthError
from dbmetrics.core.errors import FetchError, TransportError
from dbmetrics.core.spark import SparkService
from dbmetrics.core.transport import HttpTransport, retrying_session
from dbmetrics.core.workspace import WorkspaceService


class _Session:
    def __init__(self, status: int = 200, content: bytes = b"{}", exc: Exception | None = None):
        self.status = status
        self.content = content
        self.exc = exc
        self.calls: list[tuple[str, dict, float]] = []

    def get(self, url: str, headers: dict, timeout: float):
        self.calls.append((url, headers, timeout))
        if self.exc:
            raise self.exc
        return SimpleNamespace(
            status_code=self.status,
            content=self.content,
            text=self.content.decode(),
            reason="Error",
        )


def test_get_joins_base_url_and_sends_fresh_headers():
    session = _Session(content=b'{"ok": true}')
    tokens = iter(["t1", "t2"])
    transport = HttpTransport(
        "https://adb-1.2.azuredatabricks.net/",
        headers=lambda: {"Authorization": f"Bearer {next(tokens)}"},
        session=session,
    )

    assert transport.get("/api/2.0/clusters/list") == b'{"ok": true}'
    transport.get("/api/2.0/pipelines")

    assert session.calls[0][0] == "https://adb-1.2.azuredatabricks.net/api/2.0/clusters/list"
    assert session.calls[0][1] == {"Authorization": "Bearer t1"}
    assert session.calls[1][1] == {"Authorization": "Bearer t2"}


def test_http_error_status_raises_transport_error():
    session = _Session(status=403, content=b"PERMISSION_DENIED")
    transport = HttpTransport("https://host", headers=dict, session=session)

    with pytest.raises(TransportError, match="HTTP 403: PERMISSION_DENIED") as info:
        transport.get("/api/2.0/clusters/list")
    assert info.value.status == 403
    assert info.value.path == "/api/2.0/clusters/list"


def test_connection_error_raises_transport_error():
    session = _Session(exc=requests.ConnectionError("refused"))
    transport = HttpTransport("https://host", headers=dict, session=session)

    with pytest.raises(TransportError, match="refused"):
        transport.get("/metrics/json")


def test_workspace_api_builds_paginated_paths():
    class _Transport:
        def __init__(self):
            self.paths: list[str] = []

        def get(self, path: str) -> bytes:
            self.paths.append(path)
            return b'{"runs": [], "has_more": false}'

    transport = _Transport()
    api = WorkspaceApi(transport)
    api.active_runs_page(25, 50)
    api.completed_runs_page(9, 25, 0)

    assert transport.paths == [
        "/api/2.1/jobs/runs/list?active_only=true&limit=25&offset=50",
        "/api/2.1/jobs/runs/list?completed_only=true&expand_tasks=true&job_id=9&limit=25&offset=0",
    ]


def test_spark_api_factory_scopes_transport_to_cluster():
    session = _Session(content=b'[{"id": "app-1"}]')
    factory = SparkApiFactory(
        endpoint="https://westus.azuredatabricks.net/",
        org_id="123",
        port=40001,
        headers=dict,
        session=session,
    )

    apps = factory("0101-abc").applications()

    assert apps[0].id == "app-1"
    assert session.calls[0][0] == (
        "https://westus.azuredatabricks.net/driver-proxy-api/o/123/0101-abc/40001/api/v1/applications"
    )


def test_spark_proxy_url():
    assert spark_proxy_url("https://h", "1", "c", 40001) == "https://h/driver-proxy-api/o/1/c/40001"


def _expired_headers() -> dict[str, str]:
    raise AuthError("Databricks authentication failed: token expired")


def test_auth_failure_during_completed_runs_names_the_job():
    api = WorkspaceApi(HttpTransport("https://host", _expired_headers, session=_Session()))
    service = WorkspaceService(api, limit=2)

    with pytest.raises(FetchError, match="job id: 42: .*token expired") as info:
        service.completed_job_runs(42, 10)
    assert info.value.ident == 42
    assert isinstance(info.value.__cause__, AuthError)


def test_auth_failure_during_app_fan_out_names_the_app():
    calls = iter([lambda: {}, _expired_headers])

    def headers() -> dict[str, str]:
        return next(calls)()

    session = _Session(content=b'[{"id": "app-1"}]')
    factory = SparkApiFactory("https://h", "1", 40001, headers=headers, session=session)

    with pytest.raises(FetchError, match="app id: app-1") as info:
        SparkService(factory).jobs_by_app("c1")
    assert isinstance(info.value.__cause__, AuthError)


class _FlakyServer(HTTPServer):
    """Local server answering each GET with the next queued status."""

    def __init__(self, statuses: list[int]) -> None:
        super().__init__(("127.0.0.1", 0), _FlakyHandler)
        self.statuses = statuses
        self.requests = 0


class _FlakyHandler(BaseHTTPRequestHandler):
    def do_GET(self) -> None:
        server = self.server
        status = server.statuses[min(server.requests, len(server.statuses) - 1)]
        server.requests += 1
        body = b'{"ok": true}' if status == 200 else b"unavailable"
        self.send_response(status)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format, *args) -> None:
        pass


@pytest.fixture
def flaky_server():
    servers: list[_FlakyServer] = []

    def start(statuses: list[int]) -> _FlakyServer:
        server = _FlakyServer(statuses)
        threading.Thread(target=server.serve_forever, daemon=True).start()
        servers.append(server)
        return server

    yield start
    for server in servers:
        server.shutdown()
        server.server_close()


def _local_session(retries: int) -> requests.Session:
    session = retrying_session(retries=retries, backoff_factor=0)
    session.trust_env = False
    return session


def test_transient_unavailable_is_retried(flaky_server):
    server = flaky_server([503, 200])
    base = f"http://127.0.0.1:{server.server_port}"
    transport = HttpTransport(base, headers=dict, session=_local_session(retries=3))

    assert transport.get("/api/2.0/clusters/list") == b'{"ok": true}'
    assert server.requests == 2


def test_exhausted_retries_raise_last_status(flaky_server):
    server = flaky_server([503])
    base = f"http://127.0.0.1:{server.server_port}"
    transport = HttpTransport(base, headers=dict, session=_local_session(retries=1))

    with pytest.raises(TransportError, match="HTTP 503: unavailable") as info:
        transport.get("/api/2.0/clusters/list")
    assert info.value.status == 503
    assert server.requests == 2


def test_client_errors_are_not_retried(flaky_server):
    server = flaky_server([404, 200])
    base = f"http://127.0.0.1:{server.server_port}"
    transport = HttpTransport(base, headers=dict, session=_local_session(retries=3))

    with pytest.raises(TransportError) as info:
        transport.get("/api/2.0/pipelines/p1")
    assert info.value.status == 404
    assert server.requests == 1


def test_default_transport_session_retries_gets():
    transport = HttpTransport("https://host", headers=dict)

    retry = transport.session.get_adapter("https://host/x").max_retries
    assert retry.total == 3
    assert 503 in retry.status_forcelist
    assert "GET" in retry.allowed_methods


def test_spark_api_factory_keeps_one_session_per_thread():
    factory = SparkApiFactory("https://h", "1", 40001, headers=dict)
    main = factory("c1").transport.session
    other: list[requests.Session] = []
    worker = threading.Thread(target=lambda: other.append(factory("c2").transport.session))
    worker.start()
    worker.join()

    assert factory("c3").transport.session is main
    assert other[0] is not main
    assert main.get_adapter("https://h/x").max_retries.total == 3
