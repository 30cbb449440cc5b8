"""Typed updater settings loaded from ``LIVEUPDATE_*`` environment variables."""

from __future__ import annotations

import os
import platform as _platform
from dataclasses import asdict, dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from liveupdate import __version__

ENV_PREFIX = "LIVEUPDATE_"
_PATH_FIELDS = ("hot_root", "persist_root", "temp_root", "builtin_dir", "state_file")
_INT_FIELDS = ("request_timeout_s", "download_timeout_s")


def _default_home() -> Path:
    return Path(os.getenv(f"{ENV_PREFIX}HOME", "~/.liveupdate")).expanduser()


@dataclass
class UpdaterSettings:
    """Typed runtime settings for the bundle updater.

    Path fields default to subdirectories of ``LIVEUPDATE_HOME``
    (``~/.liveupdate``): ``versions`` (hot tree), ``snapshots`` (persistent
    tree), ``tmp`` (scratch), ``public`` (builtin assets) and ``state.json``.
    """

    hot_root: Path = field(default_factory=lambda: _default_home() / "versions")
    persist_root: Path = field(default_factory=lambda: _default_home() / "snapshots")
    temp_root: Path = field(default_factory=lambda: _default_home() / "tmp")
    builtin_dir: Path = field(default_factory=lambda: _default_home() / "public")
    state_file: Path = field(default_factory=lambda: _default_home() / "state.json")
    entry_point: str = "index.html"
    latest_url: str = ""
    stats_url: str = ""
    app_id: str = ""
    device_id: str = ""
    platform: str = "python"
    version_build: str = ""
    version_code: str = ""
    version_os: str = field(default_factory=_platform.release)
    plugin_version: str = __version__
    request_timeout_s: int = 10
    download_timeout_s: int = 60

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "UpdaterSettings":
        """Build settings from ``LIVEUPDATE_<FIELD>`` environment variables."""
        env = os.environ if environ is None else environ
        payload: Dict[str, Any] = {}
        for item in fields(cls):
            raw = env.get(f"{ENV_PREFIX}{item.name.upper()}")
            if raw is not None and raw.strip():
                payload[item.name] = raw
        settings = cls()
        if "LIVEUPDATE_HOME" in env and env["LIVEUPDATE_HOME"].strip():
            settings = settings.rooted_at(Path(env["LIVEUPDATE_HOME"]).expanduser())
        return settings.apply_dict(payload)

    def rooted_at(self, home: Path) -> "UpdaterSettings":
        """Return a copy whose path fields live under ``home``."""
        home = Path(home)
        return replace(
            self,
            hot_root=home / "versions",
            persist_root=home / "snapshots",
            temp_root=home / "tmp",
            builtin_dir=home / "public",
            state_file=home / "state.json",
        )

    def apply_dict(self, payload: Mapping[str, Any]) -> "UpdaterSettings":
        """Return a copy with ``payload`` values coerced onto known fields.

        Raises:
            ValueError: If a key is unknown or a value cannot be coerced.
        """
        known = {item.name for item in fields(self)}
        updates: Dict[str, Any] = {}
        for key, raw in payload.items():
            if key not in known:
                raise ValueError(f"Unknown setting: {key}")
            updates[key] = self._coerce_value(key, raw)
        return replace(self, **updates) if updates else self

    def to_dict(self) -> Dict[str, Any]:
        payload = asdict(self)
        for key in _PATH_FIELDS:
            payload[key] = str(payload[key])
        return payload

    # ------------------------------------------------------------------
    @classmethod
    def _coerce_value(cls, key: str, raw: Any) -> Any:
        if key in _PATH_FIELDS:
            return cls._coerce_path(key, raw)
        if key in _INT_FIELDS:
            return cls._coerce_int(key, raw, allow_negative=False)
        if key == "entry_point":
            value = cls._coerce_str(raw)
            if not value or "/" in value:
                raise ValueError("entry_point must be a plain file name.")
            return value
        return cls._coerce_str(raw)

    @staticmethod
    def _coerce_path(name: str, value: Any) -> Path:
        if isinstance(value, Path):
            return value.expanduser()
        if not isinstance(value, str) or not value.strip():
            raise ValueError(f"{name} must be a non-empty path.")
        return Path(value.strip()).expanduser()

    @staticmethod
    def _coerce_str(value: Any) -> str:
        if value is None:
            return ""
        return str(value).strip()

    @staticmethod
    def _coerce_int(name: str, value: Any, *, allow_negative: bool = True) -> int:
        if isinstance(value, bool):
            raise ValueError(f"{name} must be an integer.")
        if isinstance(value, (int, float)):
            coerced = int(value)
        elif isinstance(value, str):
            try:
                coerced = int(value.strip())
            except (TypeError, ValueError) as exc:
                raise ValueError(f"{name} must be an integer.") from exc
        else:
            raise ValueError(f"{name} must be an integer.")
        if not allow_negative and coerced < 0:
            raise ValueError(f"{name} must be non-negative.")
        return coerced


__all__ = ["ENV_PREFIX", "UpdaterSettings"]
