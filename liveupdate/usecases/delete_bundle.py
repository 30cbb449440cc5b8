"""Use case for removing one bundle from both trees and the registry."""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass, field
from typing import Callable

from liveupdate.domain.paths import StoragePaths, is_reserved_id
from liveupdate.usecases.bundle_registry import BundleRegistry


def _no_stats(action: str, version_name: str) -> None:
    return None


@dataclass
class DeleteBundle:
    """Delete a bundle's directories and record.

    The hot tree is a disposable cache, so failing to remove it is only
    logged. Failing to remove the persistent directory returns ``False`` and
    keeps the record.
    """

    registry: BundleRegistry
    paths: StoragePaths
    report_stats: Callable[[str, str], None] = _no_stats
    log: logging.Logger = field(default_factory=lambda: logging.getLogger("liveupdate.delete"))

    def __call__(self, bundle_id: str) -> bool:
        if is_reserved_id(bundle_id):
            self.log.warning("Refusing to delete reserved bundle [%s]", bundle_id)
            return False
        deleted = self.registry.get(bundle_id)
        hot, persist = self.paths.resolve(bundle_id)
        try:
            shutil.rmtree(hot)
        except OSError as exc:
            self.log.warning("Hot folder %s not removed: %s", hot, exc)
        try:
            shutil.rmtree(persist)
        except OSError as exc:
            self.log.error("Folder %s not removed: %s", persist, exc)
            return False
        self.registry.remove(bundle_id)
        self.report_stats("delete", deleted.version_name)
        return True


__all__ = ["DeleteBundle"]
