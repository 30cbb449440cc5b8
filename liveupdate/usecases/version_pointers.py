"""Current / fallback / next pointers and the commit-rollback state machine.

``set`` moves the *current* pointer only after the target is installed in
both trees. ``commit`` promotes a bundle and makes it the *fallback*.
``rollback`` only annotates the record as failed: reverting is done by the
caller through ``set`` on the fallback or builtin id.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional, Union

from liveupdate.domain.bundle import ID_BUILTIN, BundleInfo, BundleStatus
from liveupdate.domain.paths import StoragePaths, is_reserved_id
from liveupdate.domain.ports import KeyValueStorePort
from liveupdate.usecases.bundle_registry import BundleRegistry

CURRENT_KEY = "current"
FALLBACK_KEY = "fallback"
NEXT_KEY = "next"
DEFAULT_FOLDER = ""

StatsSink = Callable[[str, str], None]


def _no_stats(action: str, version_name: str) -> None:
    return None


@dataclass
class VersionPointers:
    """Arbitrate which bundle the host loads."""

    store: KeyValueStorePort
    registry: BundleRegistry
    paths: StoragePaths
    entry_point: str = "index.html"
    report_stats: StatsSink = _no_stats
    log: logging.Logger = field(default_factory=lambda: logging.getLogger("liveupdate.pointers"))

    # ---- current ----
    def get_current_bundle_id(self) -> str:
        value = self.store.get(CURRENT_KEY)
        return str(value) if value else DEFAULT_FOLDER

    def is_using_builtin(self) -> bool:
        return self.get_current_bundle_id() == DEFAULT_FOLDER

    def get_current_bundle(self) -> BundleInfo:
        """Return the record for the current bundle (builtin when unset)."""
        bundle_id = self.get_current_bundle_id()
        return self.registry.get(bundle_id or ID_BUILTIN)

    def bundle_exists(self, bundle_id: str) -> bool:
        """Return whether both trees hold a directory with an entry point for ``bundle_id``."""
        if is_reserved_id(bundle_id):
            return False
        hot, persist = self.paths.resolve(bundle_id)
        return (
            hot.is_dir()
            and persist.is_dir()
            and (hot / self.entry_point).is_file()
            and (persist / self.entry_point).is_file()
        )

    def set(self, bundle: Union[str, BundleInfo]) -> bool:
        """Point *current* at an installed bundle; return ``False`` if it is not installed."""
        bundle_id = bundle.id if isinstance(bundle, BundleInfo) else str(bundle)
        target = self.registry.get(bundle_id or ID_BUILTIN)
        if target.is_builtin:
            self._set_current(DEFAULT_FOLDER)
            self.report_stats("set", target.version_name)
            return True
        if not self.bundle_exists(bundle_id):
            self.log.warning("Bundle [%s] is not installed, current bundle unchanged", bundle_id)
            self.report_stats("set_fail", target.version_name)
            return False
        self._set_current(bundle_id)
        self.registry.set_status(bundle_id, BundleStatus.PENDING)
        self.report_stats("set", target.version_name)
        return True

    # ---- commit / rollback / reset ----
    def commit(self, bundle: BundleInfo) -> None:
        """Mark ``bundle`` as verified good and make it the fallback."""
        self.registry.set_status(bundle.id, BundleStatus.SUCCESS)
        self._set_fallback(bundle)
        self.store.synchronize()

    def rollback(self, bundle: BundleInfo) -> None:
        """Mark ``bundle`` as failed. The current pointer is left alone."""
        self.registry.set_status(bundle.id, BundleStatus.ERROR)

    def reset(self, internal: bool = False) -> None:
        """Restore builtin defaults for all three pointers."""
        self._set_current(DEFAULT_FOLDER)
        self._set_fallback(None)
        self.set_next_version(None)
        self.store.synchronize()
        if not internal:
            self.report_stats("reset", self.get_current_bundle().version_name)

    # ---- fallback ----
    def get_fallback_version(self) -> BundleInfo:
        bundle_id = self.store.get(FALLBACK_KEY) or ID_BUILTIN
        return self.registry.get(str(bundle_id))

    # ---- next ----
    def get_next_version(self) -> Optional[BundleInfo]:
        bundle_id = self.store.get(NEXT_KEY) or ""
        if not bundle_id:
            return None
        return self.registry.get(str(bundle_id))

    def set_next_version(self, bundle_id: Optional[str]) -> bool:
        """Stage ``bundle_id`` for the next load, or clear the stage with ``None``.

        Returns ``False`` when the bundle has no persistent directory.
        """
        if bundle_id is None:
            self.store.remove(NEXT_KEY)
        else:
            if is_reserved_id(bundle_id) or not self.paths.persist_path(bundle_id).exists():
                self.log.warning("Cannot stage bundle [%s]: not installed", bundle_id)
                return False
            self.store.set(NEXT_KEY, bundle_id)
            self.registry.set_status(bundle_id, BundleStatus.PENDING)
        self.store.synchronize()
        return True

    # ------------------------------------------------------------------
    def _set_current(self, bundle_id: str) -> None:
        self.store.set(CURRENT_KEY, bundle_id)
        self.log.info("Current bundle set to: [%s]", bundle_id or ID_BUILTIN)
        self.store.synchronize()

    def _set_fallback(self, bundle: Optional[BundleInfo]) -> None:
        self.store.set(FALLBACK_KEY, ID_BUILTIN if bundle is None else bundle.id)


__all__ = ["CURRENT_KEY", "FALLBACK_KEY", "NEXT_KEY", "VersionPointers"]
