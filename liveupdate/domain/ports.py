"""Ports (hexagonal boundaries) the use cases depend on."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional, Protocol

BundleId = str

# Receives (bundle_id, percent) during a download.
ProgressListener = Callable[[BundleId, int], None]
# Receives the raw transfer percentage in [0, 100].
TransferProgress = Callable[[int], None]


# ---- Ports (Hexagonal boundaries) ----
class KeyValueStorePort(Protocol):
    """Process-wide durable key-value state for pointers and bundle records.

    Values are JSON-compatible. Reads always hit durable storage.
    """

    def get(self, key: str, default: Any = None) -> Any: ...
    def set(self, key: str, value: Any) -> None: ...
    def remove(self, key: str) -> None: ...
    def synchronize(self) -> None: ...  # flush pending writes to disk


class ArchivePort(Protocol):
    """Decompress one archive file into a fresh directory."""

    def extract(self, archive_path: Path, destination: Path) -> None: ...


class TransferPort(Protocol):
    """HTTP capabilities the orchestrator needs."""

    def post_json(
        self, url: str, body: Mapping[str, Any], *, timeout: Optional[int] = None
    ) -> Dict[str, Any]: ...  # decoded JSON object
    def download(
        self, url: str, destination: Path, *, on_progress: Optional[TransferProgress] = None
    ) -> Path: ...  # returns destination
