"""Tests for the check-latest and stats reporting use cases."""

from __future__ import annotations

import logging

from liveupdate.adapters.api_errors import ApiTimeoutError
from liveupdate.domain.app_version import DeviceFingerprint
from liveupdate.usecases.check_latest import CheckLatest
from liveupdate.usecases.report_stats import ReportStats
from liveupdate.tests.unit.helpers import FakeTransport, run_inline

LATEST_URL = "https://updates.example/latest"
STATS_URL = "https://updates.example/stats"


def _fingerprint() -> DeviceFingerprint:
    return DeviceFingerprint(
        platform="python",
        device_id="device-1",
        app_id="com.example.app",
        version_build="1.0",
        version_code="7",
        version_os="6.1",
        plugin_version="0.4.0",
    )


def test_check_latest_returns_offer_and_sends_current_version():
    transport = FakeTransport(
        responses={LATEST_URL: {"version": "2.0", "url": "https://cdn/b.zip", "major": False}}
    )
    usecase = CheckLatest(transport, _fingerprint(), current_version_name=lambda: "1.5")

    latest = usecase(LATEST_URL)

    assert latest is not None
    assert latest.version == "2.0"
    assert latest.major is False
    url, body = transport.posts[0]
    assert url == LATEST_URL
    assert body["version_name"] == "1.5"
    assert body["device_id"] == "device-1"


def test_check_latest_without_url_is_none_but_logs_message(caplog):
    transport = FakeTransport(responses={LATEST_URL: {"message": "Maintenance tonight"}})
    usecase = CheckLatest(transport, _fingerprint(), current_version_name=lambda: "")

    with caplog.at_level(logging.INFO, logger="liveupdate.latest"):
        assert usecase(LATEST_URL) is None

    assert "Maintenance tonight" in caplog.text


def test_check_latest_network_error_is_none():
    transport = FakeTransport(post_exc=ApiTimeoutError("slow"))
    usecase = CheckLatest(transport, _fingerprint(), current_version_name=lambda: "")

    assert usecase(LATEST_URL) is None


def test_stats_disabled_without_url():
    spawned = []
    transport = FakeTransport()
    stats = ReportStats(transport, _fingerprint(), stats_url="", spawn=spawned.append)

    stats("set", "1.0")

    assert spawned == []
    assert transport.posts == []


def test_stats_posts_event_body():
    transport = FakeTransport()
    stats = ReportStats(transport, _fingerprint(), stats_url=STATS_URL, spawn=run_inline)

    stats("delete", "1.0")

    url, body = transport.posts[0]
    assert url == STATS_URL
    assert body["action"] == "delete"
    assert body["version_name"] == "1.0"


def test_stats_failures_are_swallowed_and_logged(caplog):
    transport = FakeTransport(post_exc=ApiTimeoutError("slow"))
    stats = ReportStats(transport, _fingerprint(), stats_url=STATS_URL, spawn=run_inline)

    with caplog.at_level(logging.WARNING, logger="liveupdate.stats"):
        stats("reset", "")

    assert "Stats send failed for reset" in caplog.text
