"""Bundle record model and its explicit storage schema."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Mapping

ID_BUILTIN = "builtin"
ID_UNKNOWN = "unknown"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BundleStatus(str, Enum):
    """Lifecycle state of one installed bundle."""

    SUCCESS = "success"
    ERROR = "error"
    PENDING = "pending"
    DOWNLOADING = "downloading"
    PENDING_INFO = "pending_info"

    @classmethod
    def parse(cls, raw: Any) -> "BundleStatus":
        """Return the status for a stored literal, raising ``ValueError`` if unknown."""
        text = str(raw or "").strip().lower()
        for member in cls:
            if member.value == text:
                return member
        raise ValueError(f"Unknown bundle status: {raw!r}")


@dataclass(frozen=True)
class BundleInfo:
    """Metadata record for one bundle, keyed by its directory id."""

    id: str
    version_name: str = ""
    status: BundleStatus = BundleStatus.PENDING
    downloaded_at: datetime = field(default_factory=_utcnow)

    @property
    def is_builtin(self) -> bool:
        return self.id == ID_BUILTIN

    @property
    def is_unknown(self) -> bool:
        return self.id == ID_UNKNOWN

    @property
    def is_error_status(self) -> bool:
        return self.status is BundleStatus.ERROR

    def with_id(self, bundle_id: str) -> "BundleInfo":
        return replace(self, id=bundle_id)

    def with_status(self, status: BundleStatus) -> "BundleInfo":
        return replace(self, status=status)

    def with_version_name(self, version_name: str) -> "BundleInfo":
        return replace(self, version_name=version_name)

    @classmethod
    def builtin(cls) -> "BundleInfo":
        """Return the synthesized record for the bundle shipped with the app."""
        return cls(id=ID_BUILTIN, version_name="", status=BundleStatus.SUCCESS)

    def to_dict(self) -> Dict[str, str]:
        """Return the storage payload for this record."""
        return {
            "id": self.id,
            "version": self.version_name,
            "status": self.status.value,
            "downloaded": self.downloaded_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "BundleInfo":
        """Build a record from a storage payload.

        Raises:
            ValueError: If the payload is not a mapping or a field is malformed.
        """
        if not isinstance(payload, Mapping):
            raise ValueError("Bundle record must be a mapping.")
        bundle_id = str(payload.get("id") or "").strip()
        if not bundle_id:
            raise ValueError("Bundle record is missing its id.")
        status = BundleStatus.parse(payload.get("status"))
        downloaded_raw = payload.get("downloaded")
        if downloaded_raw:
            try:
                downloaded_at = datetime.fromisoformat(str(downloaded_raw))
            except ValueError as exc:
                raise ValueError(f"Invalid downloaded timestamp: {downloaded_raw!r}") from exc
            if downloaded_at.tzinfo is None:
                downloaded_at = downloaded_at.replace(tzinfo=timezone.utc)
        else:
            downloaded_at = _utcnow()
        return cls(
            id=bundle_id,
            version_name=str(payload.get("version") or ""),
            status=status,
            downloaded_at=downloaded_at,
        )


__all__ = ["BundleInfo", "BundleStatus", "ID_BUILTIN", "ID_UNKNOWN"]
