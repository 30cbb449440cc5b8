"""Domain DTOs for the check-latest and stats endpoints."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional


@dataclass(frozen=True)
class AppVersionInfo:
    """Latest-version answer returned by the update server."""

    version: str = ""
    url: str = ""
    message: Optional[str] = None
    major: Optional[bool] = None

    @property
    def has_update(self) -> bool:
        """Return whether the server pointed at a downloadable bundle."""
        return bool(self.url)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "AppVersionInfo":
        """Build typed version info from a decoded JSON object."""
        if not isinstance(payload, Mapping):
            raise ValueError("Latest-version response must be a JSON object.")

        def _as_text(value: Any) -> str:
            return str(value).strip() if value is not None else ""

        message_raw = payload.get("message")
        major_raw = payload.get("major")
        return cls(
            version=_as_text(payload.get("version")),
            url=_as_text(payload.get("url")),
            message=_as_text(message_raw) or None,
            major=bool(major_raw) if major_raw is not None else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"version": self.version, "url": self.url}
        if self.message is not None:
            payload["message"] = self.message
        if self.major is not None:
            payload["major"] = self.major
        return payload


@dataclass(frozen=True)
class DeviceFingerprint:
    """Fixed device/app identification fields sent to the update server."""

    platform: str
    device_id: str
    app_id: str
    version_build: str
    version_code: str
    version_os: str
    plugin_version: str

    def latest_request(self, version_name: str) -> Dict[str, str]:
        """Return the check-latest POST body."""
        return {
            "platform": self.platform,
            "device_id": self.device_id,
            "app_id": self.app_id,
            "version_build": self.version_build,
            "version_code": self.version_code,
            "version_os": self.version_os,
            "plugin_version": self.plugin_version,
            "version_name": version_name,
        }

    def stats_event(self, action: str, version_name: str) -> Dict[str, str]:
        """Return the stats POST body for one lifecycle action."""
        return {
            "platform": self.platform,
            "action": action,
            "device_id": self.device_id,
            "version_name": version_name,
            "version_build": self.version_build,
            "version_code": self.version_code,
            "version_os": self.version_os,
            "plugin_version": self.plugin_version,
            "app_id": self.app_id,
        }


__all__ = ["AppVersionInfo", "DeviceFingerprint"]
