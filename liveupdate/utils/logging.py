"""Root logging setup for the CLI, with environment overrides."""

from __future__ import annotations

import logging
import os
from typing import Mapping, Optional

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
LOG_DATEFMT = "%H:%M:%S"
LEVEL_ENV = "LIVEUPDATE_LOG_LEVEL"
DEBUG_ENV = "LIVEUPDATE_DEBUG"


def parse_level(value: int | str | None, fallback: int = logging.INFO) -> int:
    """Turn ``"debug"``, ``"10"`` or ``10`` into a logging level."""
    if isinstance(value, int):
        return value
    text = (value or "").strip()
    if not text:
        return fallback
    if text.isdigit():
        return int(text)
    level = logging.getLevelName(text.upper())
    return level if isinstance(level, int) else fallback


def env_level(environ: Optional[Mapping[str, str]] = None) -> Optional[int]:
    """Return the level forced by the environment, if any.

    ``LIVEUPDATE_LOG_LEVEL`` wins over a truthy ``LIVEUPDATE_DEBUG``.
    """
    env = os.environ if environ is None else environ
    explicit = env.get(LEVEL_ENV, "")
    if explicit.strip():
        return parse_level(explicit)
    if env.get(DEBUG_ENV, "").strip().lower() in {"1", "true", "yes", "on"}:
        return logging.DEBUG
    return None


def configure_root(default_level: int | str = logging.INFO) -> int:
    """Set up root logging once for CLI use and return the effective level."""
    effective = env_level() or parse_level(default_level)
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=effective, format=LOG_FORMAT, datefmt=LOG_DATEFMT)
    root.setLevel(effective)
    return effective


def level_name(level: int) -> str:
    return logging.getLevelName(level)
