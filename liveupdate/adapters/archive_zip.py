"""Zip extraction adapter for downloaded bundle archives."""

from __future__ import annotations

import logging
import shutil
import zipfile
import zlib
from pathlib import Path, PurePosixPath
from typing import Optional

from liveupdate.domain.errors import ExtractionError
from liveupdate.domain.ports import ArchivePort


class ZipArchiveAdapter(ArchivePort):
    """Extract zip archives while rejecting traversal and symlink entries."""

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self.log = logger or logging.getLogger("liveupdate.archive")

    def extract(self, archive_path: Path, destination: Path) -> None:
        """Extract ``archive_path`` into ``destination``.

        Args:
            archive_path: Downloaded zip file.
            destination: Scratch directory, created if missing.

        Raises:
            ExtractionError: If the archive is unreadable, holds unsafe entries,
                cannot be decompressed (corrupt stream, unsupported method,
                encrypted entry), or cannot be written out.
        """
        archive_path = Path(archive_path)
        destination = Path(destination)
        try:
            destination.mkdir(parents=True, exist_ok=True)
            destination_root = destination.resolve()
            with zipfile.ZipFile(archive_path, "r") as archive:
                for entry in archive.infolist():
                    name = entry.filename.replace("\\", "/")
                    if not name:
                        continue
                    pure = PurePosixPath(name)
                    if pure.is_absolute() or ".." in pure.parts:
                        raise ExtractionError("Unsafe zip entry path detected", hint=name)
                    mode = (entry.external_attr >> 16) & 0o170000
                    if mode == 0o120000:
                        raise ExtractionError("Zip archive contains symlink entry", hint=name)
                    target_path = (destination / pure.as_posix()).resolve()
                    if destination_root not in (target_path, *target_path.parents):
                        raise ExtractionError("Zip entry escaped extraction directory", hint=name)
                    if entry.is_dir():
                        target_path.mkdir(parents=True, exist_ok=True)
                        continue
                    target_path.parent.mkdir(parents=True, exist_ok=True)
                    with archive.open(entry, "r") as source, target_path.open("wb") as handle:
                        shutil.copyfileobj(source, handle)
        except ExtractionError:
            raise
        except (
            zipfile.BadZipFile,
            zipfile.LargeZipFile,
            zlib.error,
            EOFError,
            NotImplementedError,
            RuntimeError,
        ) as exc:
            # corrupt streams, unsupported compression methods and encrypted entries
            raise ExtractionError(
                "The file cannot be unzipped",
                hint=f"Could not open zip archive {archive_path.name}: {exc}",
            ) from exc
        except OSError as exc:
            raise ExtractionError(
                "The file cannot be unzipped",
                hint=f"Extraction of {archive_path.name} failed: {exc}",
            ) from exc
        self.log.debug("Extracted %s into %s", archive_path, destination)


__all__ = ["ZipArchiveAdapter"]
