"""Use case for unpacking one downloaded archive into both bundle trees."""

from __future__ import annotations

import logging
import secrets
import shutil
import string
from dataclasses import dataclass, field
from pathlib import Path

from liveupdate.domain.errors import DirectoryCreateError, DirectoryDeleteError, StructureError
from liveupdate.domain.paths import StoragePaths, is_reserved_id
from liveupdate.domain.ports import ArchivePort

_ID_ALPHABET = string.ascii_letters + string.digits


def random_id(length: int = 10) -> str:
    """Return a random alphanumeric token used for bundle ids and scratch names."""
    return "".join(secrets.choice(_ID_ALPHABET) for _ in range(length))


@dataclass
class InstallBundle:
    """Extract, flatten, and place one archive under a bundle id.

    Attributes:
        archive_port: Decompresses archives into scratch directories.
        paths: Hot/persistent tree layout.
        temp_root: Parent of scratch extraction directories.
        entry_point: File that marks the root of a bundle.
    """

    archive_port: ArchivePort
    paths: StoragePaths
    temp_root: Path
    entry_point: str = "index.html"
    log: logging.Logger = field(default_factory=lambda: logging.getLogger("liveupdate.install"))

    def __call__(self, archive_path: str | Path, bundle_id: str) -> None:
        """Install ``archive_path`` into the hot tree, then the persistent tree.

        Each tree gets its own extraction so the copies are physically
        independent. A failure part way leaves already written directories
        in place.

        Raises:
            ExtractionError: Archive cannot be decompressed.
            StructureError: Unpacked contents cannot be moved into place.
            DirectoryCreateError: A tree root cannot be created.
            DirectoryDeleteError: A scratch directory cannot be removed.
        """
        self.install_tree(archive_path, bundle_id, self.paths.hot_root)
        self.install_tree(archive_path, bundle_id, self.paths.persist_root)

    def install_tree(self, archive_path: str | Path, bundle_id: str, root: Path) -> Path:
        """Install ``archive_path`` as ``root/bundle_id`` and return that path.

        A failed extraction or move removes its scratch directory and leaves
        the bundle trees as they are.
        """
        if is_reserved_id(bundle_id):
            raise ValueError(f"Cannot install into reserved bundle id {bundle_id!r}")
        root = Path(root)
        self._prepare_folder(root)
        destination = root / bundle_id
        scratch = Path(self.temp_root) / random_id()
        self._prepare_folder(Path(self.temp_root))

        try:
            self.archive_port.extract(Path(archive_path), scratch)
            collapsed = self._flatten(scratch, destination)
        except Exception:
            # the bundle trees are left as they are, only the scratch copy goes
            shutil.rmtree(scratch, ignore_errors=True)
            raise
        if collapsed:
            self._delete_folder(scratch)
        self.log.info("Installed bundle [%s] into %s", bundle_id, destination)
        return destination

    # ------------------------------------------------------------------
    def _prepare_folder(self, path: Path) -> None:
        if path.is_dir():
            return
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            self.log.error("Cannot create directory %s", path)
            raise DirectoryCreateError("The folder cannot be created", hint=str(path)) from exc

    def _delete_folder(self, path: Path) -> None:
        try:
            shutil.rmtree(path)
        except OSError as exc:
            self.log.error("Folder not removed: %s", path)
            raise DirectoryDeleteError("The folder cannot be deleted", hint=str(path)) from exc

    def _flatten(self, source: Path, destination: Path) -> bool:
        """Move unpacked content to ``destination``.

        A lone top-level directory with no entry point beside it is collapsed
        one level. Returns whether that happened, in which case ``source`` is
        left behind empty.
        """
        if destination.exists():
            raise StructureError("The file cannot be unflattened", hint=f"{destination} already exists")
        try:
            entries = list(source.iterdir())
            collapse = (
                len(entries) == 1
                and entries[0].is_dir()
                and not (source / self.entry_point).exists()
            )
            shutil.move(str(entries[0] if collapse else source), str(destination))
        except OSError as exc:
            self.log.error("File not moved. source: %s dest: %s", source, destination)
            raise StructureError("The file cannot be unflattened", hint=str(exc)) from exc
        return collapse


__all__ = ["InstallBundle", "random_id"]
