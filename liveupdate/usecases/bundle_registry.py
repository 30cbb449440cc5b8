"""Bundle record persistence on top of the durable key-value store.

Records live under ``"<id>_info"`` keys. The builtin and unknown sentinels
are never written; their records are synthesized on read. Every write is
followed by ``synchronize`` so a crash right after a download still leaves a
discoverable record.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from liveupdate.domain.bundle import ID_BUILTIN, BundleInfo, BundleStatus
from liveupdate.domain.paths import StoragePaths
from liveupdate.domain.ports import KeyValueStorePort

INFO_SUFFIX = "_info"


def info_key(bundle_id: str) -> str:
    """Return the store key holding the record for ``bundle_id``."""
    return f"{bundle_id}{INFO_SUFFIX}"


@dataclass
class BundleRegistry:
    """Read and write ``BundleInfo`` records, enumerate installed bundles."""

    store: KeyValueStorePort
    paths: StoragePaths
    log: logging.Logger = field(default_factory=lambda: logging.getLogger("liveupdate.registry"))

    def get(self, bundle_id: str = ID_BUILTIN) -> BundleInfo:
        """Return the record for ``bundle_id``; never raises.

        Missing or unparsable records come back as a fresh ``PENDING`` record
        with an empty version name.
        """
        if bundle_id == ID_BUILTIN:
            return BundleInfo.builtin()
        raw = self.store.get(info_key(bundle_id))
        if raw is None:
            self.log.debug("No info stored for bundle [%s]", bundle_id)
            return BundleInfo(id=bundle_id, version_name="", status=BundleStatus.PENDING)
        try:
            info = BundleInfo.from_dict(raw)
        except ValueError as exc:
            self.log.warning("Failed to parse info for bundle [%s]: %s", bundle_id, exc)
            return BundleInfo(id=bundle_id, version_name="", status=BundleStatus.PENDING)
        return info.with_id(bundle_id)

    def save(self, bundle_id: str, info: Optional[BundleInfo]) -> None:
        """Store ``info`` under ``bundle_id``; ``None`` deletes the record."""
        if info is not None and (info.is_builtin or info.is_unknown):
            self.log.debug("Not saving info for sentinel bundle [%s]", bundle_id)
            return
        if info is None:
            self.log.info("Removing info for bundle [%s]", bundle_id)
            self.store.remove(info_key(bundle_id))
        else:
            update = info.with_id(bundle_id)
            self.log.info(
                "Storing info for bundle [%s] version=%s status=%s",
                bundle_id,
                update.version_name,
                update.status.value,
            )
            self.store.set(info_key(bundle_id), update.to_dict())
        self.store.synchronize()

    def remove(self, bundle_id: str) -> None:
        self.save(bundle_id, None)

    def set_status(self, bundle_id: str, status: BundleStatus) -> BundleInfo:
        """Rewrite the status of one record and return the stored copy."""
        self.log.info("Setting status for bundle [%s] to %s", bundle_id, status.value)
        info = self.get(bundle_id).with_status(status)
        self.save(bundle_id, info)
        return info

    def set_version_name(self, bundle_id: str, version_name: str) -> BundleInfo:
        """Rewrite the human version name of one record and return the stored copy."""
        self.log.info("Setting version for bundle [%s] to %s", bundle_id, version_name)
        info = self.get(bundle_id).with_version_name(version_name)
        self.save(bundle_id, info)
        return info

    def list(self) -> List[BundleInfo]:
        """Return one record per entry in the hot tree (empty if it is missing)."""
        root = self.paths.hot_root
        if not root.is_dir():
            self.log.info("No bundle available in %s", root)
            return []
        try:
            ids = sorted(entry.name for entry in root.iterdir())
        except OSError as exc:
            self.log.warning("Cannot list bundles in %s: %s", root, exc)
            return []
        return [self.get(bundle_id) for bundle_id in ids]

    def find_by_version_name(self, version_name: str) -> Optional[BundleInfo]:
        for info in self.list():
            if info.version_name == version_name:
                return info
        return None


__all__ = ["BundleRegistry", "INFO_SUFFIX", "info_key"]
