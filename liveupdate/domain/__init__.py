"""Domain package exports for bundle records, ports, and errors."""

from .app_version import AppVersionInfo, DeviceFingerprint
from .bundle import ID_BUILTIN, ID_UNKNOWN, BundleInfo, BundleStatus
from .errors import (
    BundleError,
    DirectoryCreateError,
    DirectoryDeleteError,
    DownloadError,
    ExtractionError,
    NetworkError,
    StructureError,
)
from .paths import StoragePaths

__all__ = [
    "AppVersionInfo",
    "BundleError",
    "BundleInfo",
    "BundleStatus",
    "DeviceFingerprint",
    "DirectoryCreateError",
    "DirectoryDeleteError",
    "DownloadError",
    "ExtractionError",
    "ID_BUILTIN",
    "ID_UNKNOWN",
    "NetworkError",
    "StoragePaths",
    "StructureError",
]
