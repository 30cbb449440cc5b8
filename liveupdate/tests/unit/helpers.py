"""Shared doubles and builders for updater unit tests."""

from __future__ import annotations

import io
import zipfile
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from liveupdate.adapters.archive_zip import ZipArchiveAdapter
from liveupdate.adapters.storage_memory import MemoryStore
from liveupdate.app.settings import UpdaterSettings
from liveupdate.app.updater import BundleUpdater
from liveupdate.domain.paths import StoragePaths


def zip_bytes(files: Mapping[str, str]) -> bytes:
    """Return an in-memory zip archive holding ``files`` (name -> text)."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        for name, text in files.items():
            archive.writestr(name, text)
    return buffer.getvalue()


def corrupt_deflate_zip(text: str = "".join(f"<p>{i:05d}</p>" for i in range(2000))) -> bytes:
    """Return a ``ZIP_DEFLATED`` archive whose compressed stream is damaged.

    The central directory stays valid, so opening succeeds and the failure
    only shows up while decompressing ``index.html``.
    """
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        archive.writestr("index.html", text)
    data = bytearray(buffer.getvalue())
    with zipfile.ZipFile(io.BytesIO(bytes(data))) as archive:
        entry = archive.getinfo("index.html")
    # local header is 30 bytes plus name and extra field
    start = entry.header_offset + 30 + len(entry.filename.encode()) + len(entry.extra)
    middle = start + entry.compress_size // 2
    data[middle : middle + 8] = b"\xff" * 8
    return bytes(data)


def write_zip(path: Path, files: Mapping[str, str]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(zip_bytes(files))
    return path


def make_paths(tmp_path: Path) -> StoragePaths:
    builtin = tmp_path / "public"
    builtin.mkdir(parents=True, exist_ok=True)
    (builtin / "index.html").write_text("builtin", encoding="utf-8")
    return StoragePaths(
        hot_root=tmp_path / "versions",
        persist_root=tmp_path / "snapshots",
        builtin_dir=builtin,
    )


def run_inline(task) -> None:
    task()


class FakeTransport:
    """TransferPort double serving one archive and canned JSON answers."""

    def __init__(
        self,
        *,
        archive: Optional[bytes] = None,
        progress: Iterable[int] = (33, 66, 100),
        responses: Optional[Dict[str, Any]] = None,
        download_exc: Optional[BaseException] = None,
        post_exc: Optional[BaseException] = None,
    ) -> None:
        self.archive = archive if archive is not None else zip_bytes({"index.html": "<html>"})
        self.progress = list(progress)
        self.responses = responses or {}
        self.download_exc = download_exc
        self.post_exc = post_exc
        self.posts: List[Tuple[str, Dict[str, Any]]] = []
        self.downloads: List[Tuple[str, Path]] = []

    def post_json(self, url: str, body, *, timeout=None) -> Dict[str, Any]:
        _ = timeout
        self.posts.append((url, dict(body)))
        if self.post_exc is not None:
            raise self.post_exc
        return dict(self.responses.get(url, {}))

    def download(self, url: str, destination: Path, *, on_progress=None) -> Path:
        self.downloads.append((url, Path(destination)))
        if self.download_exc is not None:
            raise self.download_exc
        destination = Path(destination)
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_bytes(self.archive)
        if on_progress is not None:
            for percent in self.progress:
                on_progress(percent)
        return destination


def make_updater(
    tmp_path: Path,
    *,
    transport: Optional[FakeTransport] = None,
    store: Optional[MemoryStore] = None,
    **overrides: Any,
) -> BundleUpdater:
    """Build a fully wired updater rooted in ``tmp_path`` with inline stats."""
    settings = UpdaterSettings().rooted_at(tmp_path)
    settings = settings.apply_dict({"device_id": "device-1", "app_id": "com.example.app", **overrides})
    (tmp_path / "public").mkdir(parents=True, exist_ok=True)
    (tmp_path / "public" / "index.html").write_text("builtin", encoding="utf-8")
    return BundleUpdater(
        settings,
        store=store if store is not None else MemoryStore(),
        transport=transport or FakeTransport(),
        archive=ZipArchiveAdapter(),
        spawn=run_inline,
    )


__all__ = [
    "FakeTransport",
    "corrupt_deflate_zip",
    "make_paths",
    "make_updater",
    "run_inline",
    "write_zip",
    "zip_bytes",
]
