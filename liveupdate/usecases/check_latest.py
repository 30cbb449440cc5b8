"""Use case for asking the update server whether a newer bundle exists."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

from liveupdate.domain.app_version import AppVersionInfo, DeviceFingerprint
from liveupdate.domain.errors import NetworkError
from liveupdate.domain.ports import TransferPort


@dataclass
class CheckLatest:
    """Blocking POST to the check-latest endpoint.

    Attributes:
        transport: HTTP port used for the round-trip.
        fingerprint: Device/app fields sent with every request.
        current_version_name: Returns the version name of the current bundle.
    """

    transport: TransferPort
    fingerprint: DeviceFingerprint
    current_version_name: Callable[[], str]
    log: logging.Logger = field(default_factory=lambda: logging.getLogger("liveupdate.latest"))

    def __call__(self, endpoint: str) -> Optional[AppVersionInfo]:
        """Return the latest version info, or ``None`` when no update is offered.

        Network and decoding failures are logged and reported as ``None``.
        """
        body = self.fingerprint.latest_request(self.current_version_name())
        try:
            payload = self.transport.post_json(endpoint, body)
            latest = AppVersionInfo.from_payload(payload)
        except NetworkError as exc:
            self.log.warning("Error getting latest version from %s: %s", endpoint, exc)
            return None
        except ValueError as exc:
            self.log.warning("Invalid latest-version payload from %s: %s", endpoint, exc)
            return None

        if latest.message:
            self.log.info("Auto-update message: %s", latest.message)
        if not latest.has_update:
            self.log.info("No update available from %s", endpoint)
            return None
        return latest


__all__ = ["CheckLatest"]
