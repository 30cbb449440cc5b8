"""Fire-and-forget lifecycle stats reporting."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Callable

from liveupdate.domain.app_version import DeviceFingerprint
from liveupdate.domain.errors import NetworkError
from liveupdate.domain.ports import TransferPort

Task = Callable[[], None]


def spawn_daemon(task: Task) -> None:
    """Run ``task`` on a detached daemon thread."""
    worker = threading.Thread(target=task, name="liveupdate-stats", daemon=True)
    worker.start()


@dataclass
class ReportStats:
    """POST one stats event per lifecycle action without blocking the caller.

    An empty ``stats_url`` turns reporting off. Failures are logged and
    discarded.
    """

    transport: TransferPort
    fingerprint: DeviceFingerprint
    stats_url: str = ""
    spawn: Callable[[Task], None] = spawn_daemon
    log: logging.Logger = field(default_factory=lambda: logging.getLogger("liveupdate.stats"))

    def __call__(self, action: str, version_name: str) -> None:
        if not self.stats_url:
            return
        body = self.fingerprint.stats_event(action, version_name)
        url = self.stats_url

        def _send() -> None:
            try:
                self.transport.post_json(url, body)
            except NetworkError as exc:
                self.log.warning("Stats send failed for %s: %s", action, exc)
                return
            except Exception:
                self.log.exception("Unexpected stats failure for %s", action)
                return
            self.log.info("Stats send for %s, version %s", action, version_name)

        self.spawn(_send)


__all__ = ["ReportStats", "spawn_daemon"]
