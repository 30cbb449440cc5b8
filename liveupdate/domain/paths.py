"""Pure path mapping for the hot and persistent bundle trees."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import NamedTuple

from .bundle import ID_BUILTIN, ID_UNKNOWN


class BundlePaths(NamedTuple):
    """Directory pair holding one bundle's unpacked assets."""

    hot: Path
    persist: Path


def is_reserved_id(bundle_id: str) -> bool:
    """Return whether ``bundle_id`` is empty or a sentinel without its own directory."""
    return bundle_id in ("", ID_BUILTIN, ID_UNKNOWN)


@dataclass(frozen=True)
class StoragePaths:
    """Compute bundle locations under the hot and persistent roots.

    ``builtin_dir`` is the read-only asset directory shipped with the app; the
    empty id and ``ID_BUILTIN`` resolve to it in both trees.
    """

    hot_root: Path
    persist_root: Path
    builtin_dir: Path

    def hot_path(self, bundle_id: str) -> Path:
        if bundle_id in ("", ID_BUILTIN):
            return Path(self.builtin_dir)
        return Path(self.hot_root) / bundle_id

    def persist_path(self, bundle_id: str) -> Path:
        if bundle_id in ("", ID_BUILTIN):
            return Path(self.builtin_dir)
        return Path(self.persist_root) / bundle_id

    def resolve(self, bundle_id: str) -> BundlePaths:
        return BundlePaths(hot=self.hot_path(bundle_id), persist=self.persist_path(bundle_id))

    def bundle_directory(self, bundle_id: str) -> Path:
        """Return the directory the host should serve assets from."""
        return self.persist_path(bundle_id)


__all__ = ["BundlePaths", "StoragePaths", "is_reserved_id"]
