"""Tests for the update-server HTTP adapter and its shared session."""

from __future__ import annotations

import json

import pytest

pytest.importorskip("requests")

from requests import exceptions as req_exc

from liveupdate.adapters.api_errors import ApiClientError, ApiError, ApiServerError, ApiTimeoutError
from liveupdate.adapters.http_client import HttpConfig, RetryingSession
from liveupdate.adapters.update_rest import UpdateRestAdapter
from liveupdate.domain.app_version import DeviceFingerprint
from liveupdate.domain.errors import NetworkError
from liveupdate.usecases.check_latest import CheckLatest


class _FakeResponse:
    """Minimal response double compatible with adapter parsing helpers."""

    def __init__(self, status_code: int, payload: object = None, *, chunks=(), headers=None, text=None):
        self.status_code = status_code
        self._payload = payload
        self.text = text if text is not None else ("" if payload is None else json.dumps(payload))
        self.headers = headers or {}
        self._chunks = list(chunks)
        self.closed = False

    def json(self):
        if self._payload is None:
            return json.loads(self.text)
        return self._payload

    def iter_content(self, chunk_size: int):
        _ = chunk_size
        for chunk in self._chunks:
            if isinstance(chunk, Exception):
                raise chunk
            yield chunk

    def close(self):
        self.closed = True


class _FakeSession:
    """Session double returning canned responses per method and URL."""

    def __init__(self, responses):
        self._responses = responses
        self.calls = []

    def get(self, url: str, *, accept: str = "application/json", timeout=None, stream: bool = False):
        self.calls.append(("GET", url, accept, timeout, stream))
        return self._responses[("GET", url)]

    def post(self, url: str, *, json_body=None, timeout=None):
        self.calls.append(("POST", url, json_body, timeout))
        return self._responses[("POST", url)]


def _adapter(responses) -> UpdateRestAdapter:
    adapter = UpdateRestAdapter(request_timeout_s=5, download_timeout_s=30)
    adapter.session = _FakeSession(responses)
    return adapter


def test_post_json_returns_object_payload():
    adapter = _adapter({("POST", "http://u/latest"): _FakeResponse(200, {"version": "2"})})

    payload = adapter.post_json("http://u/latest", {"device_id": "d"})

    assert payload == {"version": "2"}
    assert adapter.session.calls == [("POST", "http://u/latest", {"device_id": "d"}, 5)]


def test_post_json_empty_body_is_empty_object():
    adapter = _adapter({("POST", "http://u/stats"): _FakeResponse(200, text="")})

    assert adapter.post_json("http://u/stats", {}) == {}


def test_post_json_rejects_non_object_payload():
    adapter = _adapter({("POST", "http://u/latest"): _FakeResponse(200, [1, 2])})

    with pytest.raises(ApiError):
        adapter.post_json("http://u/latest", {})


def test_post_json_maps_status_errors():
    adapter = _adapter(
        {
            ("POST", "http://u/a"): _FakeResponse(404, {"code": "not_found", "message": "nope"}),
            ("POST", "http://u/b"): _FakeResponse(503, {"message": "down"}),
        }
    )

    with pytest.raises(ApiClientError) as client_exc:
        adapter.post_json("http://u/a", {})
    with pytest.raises(ApiServerError) as server_exc:
        adapter.post_json("http://u/b", {})

    assert client_exc.value.status == 404
    assert server_exc.value.status == 503
    assert isinstance(server_exc.value, NetworkError)


def test_download_streams_chunks_and_reports_increasing_percent(tmp_path):
    chunks = [b"a" * 40, b"", b"b" * 40, b"c" * 20]
    adapter = _adapter(
        {("GET", "http://u/b.zip"): _FakeResponse(200, chunks=chunks, headers={"Content-Length": "100"})}
    )
    seen = []

    target = adapter.download("http://u/b.zip", tmp_path / "tmp" / "scratch", on_progress=seen.append)

    assert target.read_bytes() == b"a" * 40 + b"b" * 40 + b"c" * 20
    assert seen == [40, 80, 100]
    assert adapter.session._responses[("GET", "http://u/b.zip")].closed
    assert adapter.session.calls[0][2:] == ("application/octet-stream", 30, True)


def test_download_without_content_length_reports_nothing(tmp_path):
    adapter = _adapter({("GET", "http://u/b.zip"): _FakeResponse(200, chunks=[b"xyz"])})
    seen = []

    adapter.download("http://u/b.zip", tmp_path / "scratch", on_progress=seen.append)

    assert seen == []


def test_download_interrupted_transfer_raises_api_error(tmp_path):
    response = _FakeResponse(
        200,
        chunks=[b"abc", req_exc.ChunkedEncodingError("reset")],
        headers={"Content-Length": "10"},
    )
    adapter = _adapter({("GET", "http://u/b.zip"): response})

    with pytest.raises(ApiError):
        adapter.download("http://u/b.zip", tmp_path / "scratch")

    assert response.closed


def test_download_http_error_does_not_create_file(tmp_path):
    response = _FakeResponse(403, {"message": "denied"})
    adapter = _adapter({("GET", "http://u/b.zip"): response})

    with pytest.raises(ApiClientError):
        adapter.download("http://u/b.zip", tmp_path / "scratch")

    assert not (tmp_path / "scratch").exists()
    assert response.closed


class _TimeoutRequestsSession:
    def __init__(self):
        self.attempts = 0

    def post(self, url, **kwargs):
        _ = (url, kwargs)
        self.attempts += 1
        raise req_exc.ConnectTimeout("slow")


def test_retrying_session_raises_timeout_after_attempts():
    session = RetryingSession(HttpConfig(retries=2), user_agent="liveupdate/test")
    fake = _TimeoutRequestsSession()
    session.session = fake

    with pytest.raises(ApiTimeoutError) as excinfo:
        session.post("http://u/latest", json_body={"a": 1})

    assert fake.attempts == 3
    assert excinfo.value.code == "bundle.network_timeout"
    assert session._headers(json_body=True)["User-Agent"] == "liveupdate/test"


class _FailingRequestsSession:
    """Stands in for ``requests.Session`` and raises ``exc`` on every call."""

    def __init__(self, exc: Exception):
        self.exc = exc
        self.attempts = 0

    def get(self, url, **kwargs):
        _ = (url, kwargs)
        self.attempts += 1
        raise self.exc

    def post(self, url, **kwargs):
        _ = (url, kwargs)
        self.attempts += 1
        raise self.exc


@pytest.mark.parametrize(
    "exc",
    [
        req_exc.TooManyRedirects("loop"),
        req_exc.ContentDecodingError("bad gzip"),
        req_exc.InvalidURL("no host"),
    ],
)
def test_non_transient_request_errors_become_api_errors(tmp_path, exc):
    adapter = UpdateRestAdapter(retries=2)
    failing = _FailingRequestsSession(exc)
    adapter.session.session = failing

    with pytest.raises(ApiError) as post_exc:
        adapter.post_json("http://u/latest", {})
    with pytest.raises(ApiError):
        adapter.download("http://u/b.zip", tmp_path / "scratch")

    assert not isinstance(post_exc.value, ApiTimeoutError)
    assert post_exc.value.__cause__ is exc
    assert failing.attempts == 2


def test_check_latest_survives_redirect_loop():
    adapter = UpdateRestAdapter()
    adapter.session.session = _FailingRequestsSession(req_exc.TooManyRedirects("loop"))
    fingerprint = DeviceFingerprint(
        platform="python",
        device_id="d",
        app_id="a",
        version_build="1",
        version_code="1",
        version_os="6.1",
        plugin_version="0.4.0",
    )
    usecase = CheckLatest(adapter, fingerprint, current_version_name=lambda: "")

    assert usecase("https://updates.example/latest") is None
