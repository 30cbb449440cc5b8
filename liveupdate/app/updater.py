"""Public facade exposing the bundle lifecycle operations to a host.

``BundleUpdater`` wires the adapters and use cases from one
``UpdaterSettings`` and offers the operations a host runtime calls:
check/download/list/delete/set/reset/commit/rollback, pointer reads, and a
progress subscription.

Callers must serialize mutating calls; there is no internal lock. Progress
listeners run on the calling thread during ``download``; stats are sent from
daemon threads.
"""

from __future__ import annotations

import logging
import uuid
from pathlib import Path
from typing import Callable, List, Optional, Union

from liveupdate.adapters.archive_zip import ZipArchiveAdapter
from liveupdate.adapters.storage_local import JsonFileStore
from liveupdate.adapters.update_rest import UpdateRestAdapter
from liveupdate.app.settings import UpdaterSettings
from liveupdate.domain.app_version import AppVersionInfo, DeviceFingerprint
from liveupdate.domain.bundle import ID_BUILTIN, BundleInfo
from liveupdate.domain.paths import StoragePaths
from liveupdate.domain.ports import ArchivePort, KeyValueStorePort, ProgressListener, TransferPort
from liveupdate.usecases.bundle_registry import BundleRegistry
from liveupdate.usecases.check_latest import CheckLatest
from liveupdate.usecases.delete_bundle import DeleteBundle
from liveupdate.usecases.download_bundle import DownloadBundle
from liveupdate.usecases.install_bundle import InstallBundle
from liveupdate.usecases.report_stats import ReportStats, Task, spawn_daemon
from liveupdate.usecases.version_pointers import VersionPointers

DEVICE_ID_KEY = "device_id"


class BundleUpdater:
    """Compose ports and use cases into the public updater API."""

    def __init__(
        self,
        settings: Optional[UpdaterSettings] = None,
        *,
        store: Optional[KeyValueStorePort] = None,
        transport: Optional[TransferPort] = None,
        archive: Optional[ArchivePort] = None,
        spawn: Callable[[Task], None] = spawn_daemon,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.settings = settings or UpdaterSettings.from_env()
        self.log = logger or logging.getLogger("liveupdate.updater")
        self.store = store or JsonFileStore(self.settings.state_file)
        self.transport = transport or UpdateRestAdapter(
            request_timeout_s=self.settings.request_timeout_s,
            download_timeout_s=self.settings.download_timeout_s,
            user_agent=f"liveupdate/{self.settings.plugin_version}",
        )
        self.archive = archive or ZipArchiveAdapter()
        self.paths = StoragePaths(
            hot_root=Path(self.settings.hot_root),
            persist_root=Path(self.settings.persist_root),
            builtin_dir=Path(self.settings.builtin_dir),
        )
        self.fingerprint = DeviceFingerprint(
            platform=self.settings.platform,
            device_id=self.settings.device_id or self._stored_device_id(),
            app_id=self.settings.app_id,
            version_build=self.settings.version_build,
            version_code=self.settings.version_code,
            version_os=self.settings.version_os,
            plugin_version=self.settings.plugin_version,
        )
        self._listeners: List[ProgressListener] = []

        self.registry = BundleRegistry(self.store, self.paths)
        self.report_stats = ReportStats(
            self.transport,
            self.fingerprint,
            stats_url=self.settings.stats_url,
            spawn=spawn,
        )
        self.pointers = VersionPointers(
            self.store,
            self.registry,
            self.paths,
            entry_point=self.settings.entry_point,
            report_stats=self.report_stats,
        )
        self.installer = InstallBundle(
            self.archive,
            self.paths,
            temp_root=Path(self.settings.temp_root),
            entry_point=self.settings.entry_point,
        )
        self._check_latest = CheckLatest(
            self.transport,
            self.fingerprint,
            current_version_name=lambda: self.pointers.get_current_bundle().version_name,
        )
        self._download = DownloadBundle(
            self.transport,
            self.installer,
            self.registry,
            temp_root=Path(self.settings.temp_root),
            notify=self._notify_download,
        )
        self._delete = DeleteBundle(self.registry, self.paths, report_stats=self.report_stats)

    # ------------------------------------------------------------------
    # Progress subscription
    # ------------------------------------------------------------------
    def subscribe_progress(self, listener: ProgressListener) -> Callable[[], None]:
        """Register ``listener(bundle_id, percent)``; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _notify_download(self, bundle_id: str, percent: int) -> None:
        for listener in list(self._listeners):
            try:
                listener(bundle_id, percent)
            except Exception:
                self.log.exception("Progress listener failed for bundle [%s]", bundle_id)

    # ------------------------------------------------------------------
    # Orchestration
    # ------------------------------------------------------------------
    def check_latest(self, endpoint: Optional[str] = None) -> Optional[AppVersionInfo]:
        url = endpoint or self.settings.latest_url
        if not url:
            raise ValueError("No check-latest endpoint configured")
        return self._check_latest(url)

    def download(self, url: str, version: str) -> BundleInfo:
        return self._download(url, version)

    def list(self) -> List[BundleInfo]:
        return self.registry.list()

    def delete(self, bundle_id: str) -> bool:
        return self._delete(bundle_id)

    # ------------------------------------------------------------------
    # Pointers
    # ------------------------------------------------------------------
    def set(self, bundle: Union[str, BundleInfo]) -> bool:
        return self.pointers.set(bundle)

    def reset(self, internal: bool = False) -> None:
        self.pointers.reset(internal=internal)

    def commit(self, bundle: BundleInfo) -> None:
        self.pointers.commit(bundle)

    def rollback(self, bundle: BundleInfo) -> None:
        self.pointers.rollback(bundle)

    def get_current_bundle(self) -> BundleInfo:
        return self.pointers.get_current_bundle()

    def get_current_bundle_id(self) -> str:
        return self.pointers.get_current_bundle_id()

    def is_using_builtin(self) -> bool:
        return self.pointers.is_using_builtin()

    def get_fallback_version(self) -> BundleInfo:
        return self.pointers.get_fallback_version()

    def get_next_version(self) -> Optional[BundleInfo]:
        return self.pointers.get_next_version()

    def set_next_version(self, bundle_id: Optional[str]) -> bool:
        return self.pointers.set_next_version(bundle_id)

    def bundle_exists(self, bundle_id: str) -> bool:
        return self.pointers.bundle_exists(bundle_id)

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------
    def get_bundle_info(self, bundle_id: str = ID_BUILTIN) -> BundleInfo:
        return self.registry.get(bundle_id)

    def get_bundle_info_by_version_name(self, version_name: str) -> Optional[BundleInfo]:
        return self.registry.find_by_version_name(version_name)

    def set_version_name(self, bundle_id: str, version_name: str) -> BundleInfo:
        return self.registry.set_version_name(bundle_id, version_name)

    def get_bundle_directory(self, bundle_id: str) -> Path:
        return self.paths.bundle_directory(bundle_id)

    # ------------------------------------------------------------------
    def _stored_device_id(self) -> str:
        stored = self.store.get(DEVICE_ID_KEY)
        if stored:
            return str(stored)
        generated = str(uuid.uuid4())
        self.store.set(DEVICE_ID_KEY, generated)
        self.store.synchronize()
        self.log.info("Generated device id %s", generated)
        return generated


__all__ = ["BundleUpdater"]
