"""Use case for downloading and installing one bundle archive.

Progress contract (consumed by UI layers, values are exact):

- ``0`` once the ``DOWNLOADING`` record is stored,
- ``10..70`` while bytes arrive (raw transfer percent scaled into the band),
- ``71`` when the transfer finished,
- ``85`` when the hot tree is installed,
- ``100`` when the persistent tree is installed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable

from liveupdate.domain.bundle import BundleInfo, BundleStatus
from liveupdate.domain.errors import BundleError, DownloadError
from liveupdate.domain.ports import ProgressListener, TransferPort
from liveupdate.usecases.bundle_registry import BundleRegistry
from liveupdate.usecases.install_bundle import InstallBundle, random_id

TRANSFER_MIN = 10
TRANSFER_MAX = 70
TRANSFER_DONE = 71
HOT_INSTALLED = 85
PERSIST_INSTALLED = 100


def calc_total_percent(percent: int, minimum: int, maximum: int) -> int:
    """Scale a raw ``0..100`` percentage into ``[minimum, maximum]``."""
    return (percent * (maximum - minimum)) // 100 + minimum


def _silent(bundle_id: str, percent: int) -> None:
    return None


@dataclass
class DownloadBundle:
    """Fetch ``url`` into a scratch file and install it under a fresh id."""

    transport: TransferPort
    installer: InstallBundle
    registry: BundleRegistry
    temp_root: Path
    notify: ProgressListener = _silent
    new_id: Callable[[], str] = random_id
    log: logging.Logger = field(default_factory=lambda: logging.getLogger("liveupdate.download"))

    def __call__(self, url: str, version: str) -> BundleInfo:
        """Download, install into both trees, and return the ``PENDING`` record.

        Raises:
            DownloadError: Transfer or installation failed. ``bundle_id`` names
                the ``DOWNLOADING`` record left behind.
        """
        bundle_id = self.new_id()
        scratch_file = Path(self.temp_root) / random_id()
        self.registry.save(
            bundle_id,
            BundleInfo(
                id=bundle_id,
                version_name=version,
                status=BundleStatus.DOWNLOADING,
                downloaded_at=datetime.now(timezone.utc),
            ),
        )
        self.notify(bundle_id, 0)

        def _on_transfer(raw_percent: int) -> None:
            self.notify(bundle_id, calc_total_percent(raw_percent, TRANSFER_MIN, TRANSFER_MAX))

        try:
            self.log.info("Downloading bundle [%s] version=%s from %s", bundle_id, version, url)
            self.transport.download(url, scratch_file, on_progress=_on_transfer)
            self.notify(bundle_id, TRANSFER_DONE)
            self.installer.install_tree(scratch_file, bundle_id, self.installer.paths.hot_root)
            self.notify(bundle_id, HOT_INSTALLED)
            self.installer.install_tree(scratch_file, bundle_id, self.installer.paths.persist_root)
            self.notify(bundle_id, PERSIST_INSTALLED)
        except (BundleError, OSError) as exc:
            self.log.error("Download of bundle [%s] failed: %s", bundle_id, exc)
            raise DownloadError(
                f"Download of bundle {bundle_id} failed: {exc}",
                bundle_id=bundle_id,
                hint="Delete the bundle before retrying.",
            ) from exc
        finally:
            scratch_file.unlink(missing_ok=True)

        info = BundleInfo(
            id=bundle_id,
            version_name=version,
            status=BundleStatus.PENDING,
            downloaded_at=datetime.now(timezone.utc),
        )
        self.registry.save(bundle_id, info)
        return info


__all__ = ["DownloadBundle", "calc_total_percent"]
