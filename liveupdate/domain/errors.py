"""Domain-level error types for bundle installation and update workflows.

Every error carries a stable ``code`` plus a human ``message`` and optional
``hint`` so callers can branch on the code without parsing text.
"""

from __future__ import annotations

from typing import Optional


class BundleError(RuntimeError):
    """Base class for failures raised by the bundle lifecycle manager."""

    default_code = "bundle.error"

    def __init__(self, message: str, *, code: Optional[str] = None, hint: str = "") -> None:
        super().__init__(message)
        self.code = str(code or self.default_code)
        self.message = str(message)
        self.hint = str(hint or "")


class ExtractionError(BundleError):
    """The downloaded archive could not be decompressed."""

    default_code = "bundle.cannot_unzip"


class StructureError(BundleError):
    """The unpacked archive could not be normalized into a bundle directory."""

    default_code = "bundle.cannot_unflat"


class DirectoryCreateError(BundleError):
    """A storage directory could not be created."""

    default_code = "bundle.cannot_create_directory"


class DirectoryDeleteError(BundleError):
    """A storage directory could not be removed."""

    default_code = "bundle.cannot_delete_directory"


class NetworkError(BundleError):
    """Transport, timeout, or HTTP status failure."""

    default_code = "bundle.network"


class DownloadError(BundleError):
    """A download or its installation failed after the record was created.

    ``bundle_id`` names the ``DOWNLOADING`` record left behind so the caller
    can delete it. The underlying failure is chained as ``__cause__``.
    """

    default_code = "bundle.download_failed"

    def __init__(self, message: str, *, bundle_id: str, code: Optional[str] = None, hint: str = "") -> None:
        super().__init__(message, code=code, hint=hint)
        self.bundle_id = bundle_id


__all__ = [
    "BundleError",
    "DirectoryCreateError",
    "DirectoryDeleteError",
    "DownloadError",
    "ExtractionError",
    "NetworkError",
    "StructureError",
]
