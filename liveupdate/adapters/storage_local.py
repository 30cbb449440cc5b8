"""Durable key-value store backed by one JSON file.

Holds the version pointers and per-bundle records. Every read re-loads the
file so there is no in-memory cache to go stale across processes. Writes
replace the file atomically; ``synchronize`` additionally fsyncs it so a
crash right after a download cannot lose the record.
"""

from __future__ import annotations

import json
import logging
import os
import threading
import uuid
from pathlib import Path
from typing import Any, Dict, Optional

from liveupdate.domain.ports import KeyValueStorePort


class JsonFileStore(KeyValueStorePort):
    """Local filesystem key-value store (one JSON object per file)."""

    def __init__(self, path: str | Path, logger: Optional[logging.Logger] = None) -> None:
        """Create a store over one state file.

        Args:
            path: JSON file holding every key. It is created on first write,
                together with missing parent directories.
            logger: Optional logger, defaults to ``liveupdate.store``.
        """
        self.path = Path(path)
        self.log = logger or logging.getLogger("liveupdate.store")
        self._lock = threading.Lock()

    def get(self, key: str, default: Any = None) -> Any:
        """Return the stored value for ``key`` read fresh from disk, or ``default``."""
        with self._lock:
            return self._load_unlocked().get(key, default)

    def set(self, key: str, value: Any) -> None:
        """Store a JSON-compatible ``value`` and atomically replace the file.

        Raises:
            OSError: The state file or its directory cannot be written.
            TypeError: ``value`` is not JSON-serializable.
        """
        with self._lock:
            data = self._load_unlocked()
            data[key] = value
            self._write_unlocked(data)

    def remove(self, key: str) -> None:
        with self._lock:
            data = self._load_unlocked()
            if key not in data:
                return
            del data[key]
            self._write_unlocked(data)

    def synchronize(self) -> None:
        """Flush the state file and its directory entry to stable storage."""
        with self._lock:
            if not self.path.exists():
                return
            with self.path.open("rb") as handle:
                os.fsync(handle.fileno())
            self._fsync_directory(self.path.parent)

    def keys(self) -> list[str]:
        with self._lock:
            return sorted(self._load_unlocked().keys())

    # ------------------------------------------------------------------
    def _load_unlocked(self) -> Dict[str, Any]:
        if not self.path.is_file():
            return {}
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            self.log.warning("State file %s unreadable, starting empty: %s", self.path, exc)
            return {}
        if not isinstance(payload, dict):
            self.log.warning("State file %s does not hold an object, starting empty", self.path)
            return {}
        return payload

    def _write_unlocked(self, data: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(f".{self.path.name}.{uuid.uuid4().hex}.tmp")
        try:
            with tmp_path.open("w", encoding="utf-8") as handle:
                json.dump(data, handle, ensure_ascii=False, indent=2, sort_keys=True)
                handle.flush()
            os.replace(tmp_path, self.path)
        finally:
            tmp_path.unlink(missing_ok=True)

    @staticmethod
    def _fsync_directory(directory: Path) -> None:
        # Directory fds cannot be opened on Windows.
        if os.name == "nt":
            return
        fd = os.open(str(directory), os.O_RDONLY)
        try:
            os.fsync(fd)
        finally:
            os.close(fd)


__all__ = ["JsonFileStore"]
