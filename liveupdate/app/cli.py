"""Command-line entrypoint for driving the updater from scripts."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from liveupdate.app.settings import UpdaterSettings
from liveupdate.app.updater import BundleUpdater
from liveupdate.domain.bundle import BundleInfo
from liveupdate.domain.errors import BundleError, DownloadError
from liveupdate.utils.logging import configure_root, level_name

log = logging.getLogger("liveupdate.cli")


def _bundle_payload(info: Optional[BundleInfo]) -> Optional[Dict[str, Any]]:
    return info.to_dict() if info is not None else None


def _emit(payload: Any) -> None:
    json.dump(payload, sys.stdout, ensure_ascii=False, indent=2)
    sys.stdout.write("\n")


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse CLI args for one updater command."""
    parser = argparse.ArgumentParser(prog="liveupdate", description="Manage over-the-air web bundles.")
    parser.add_argument("--home", help="Root directory for bundle trees and state (LIVEUPDATE_HOME).")
    parser.add_argument("--log-level", default="WARNING")
    sub = parser.add_subparsers(dest="command", required=True)

    check = sub.add_parser("check", help="Ask the update server for the latest bundle.")
    check.add_argument("--endpoint")

    download = sub.add_parser("download", help="Download and install a bundle archive.")
    download.add_argument("url")
    download.add_argument("version")

    sub.add_parser("list", help="List installed bundles.")
    sub.add_parser("current", help="Show current, fallback, and next bundles.")

    set_cmd = sub.add_parser("set", help="Point the current bundle at an installed id.")
    set_cmd.add_argument("bundle_id")

    for name, help_text in (
        ("commit", "Mark a bundle as good and make it the fallback."),
        ("rollback", "Mark a bundle as failed."),
    ):
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument("bundle_id", nargs="?", help="Defaults to the current bundle.")

    reset = sub.add_parser("reset", help="Return to the builtin bundle.")
    reset.add_argument("--internal", action="store_true", help="Do not report a stats event.")

    delete = sub.add_parser("delete", help="Remove a bundle from disk.")
    delete.add_argument("bundle_id")

    next_cmd = sub.add_parser("next", help="Stage or clear the bundle for the next load.")
    next_cmd.add_argument("bundle_id", nargs="?")
    next_cmd.add_argument("--clear", action="store_true")
    return parser.parse_args(argv)


def run(updater: BundleUpdater, args: argparse.Namespace) -> int:
    """Execute one parsed command and return the process exit code."""
    command = args.command
    if command == "check":
        latest = updater.check_latest(args.endpoint)
        _emit(latest.to_dict() if latest else None)
        return 0 if latest else 1
    if command == "download":
        def _progress(bundle_id: str, percent: int) -> None:
            log.info("Bundle [%s] %s%%", bundle_id, percent)

        unsubscribe = updater.subscribe_progress(_progress)
        try:
            info = updater.download(args.url, args.version)
        finally:
            unsubscribe()
        _emit(_bundle_payload(info))
        return 0
    if command == "list":
        _emit([info.to_dict() for info in updater.list()])
        return 0
    if command == "current":
        _emit(
            {
                "current": _bundle_payload(updater.get_current_bundle()),
                "fallback": _bundle_payload(updater.get_fallback_version()),
                "next": _bundle_payload(updater.get_next_version()),
                "directory": str(updater.get_bundle_directory(updater.get_current_bundle().id)),
            }
        )
        return 0
    if command == "set":
        ok = updater.set(args.bundle_id)
        _emit({"ok": ok})
        return 0 if ok else 1
    if command in ("commit", "rollback"):
        bundle = (
            updater.get_bundle_info(args.bundle_id)
            if args.bundle_id
            else updater.get_current_bundle()
        )
        getattr(updater, command)(bundle)
        _emit(_bundle_payload(updater.get_bundle_info(bundle.id)))
        return 0
    if command == "reset":
        updater.reset(internal=args.internal)
        _emit({"ok": True})
        return 0
    if command == "delete":
        ok = updater.delete(args.bundle_id)
        _emit({"ok": ok})
        return 0 if ok else 1
    if command == "next":
        if not args.clear and not args.bundle_id:
            _emit(_bundle_payload(updater.get_next_version()))
            return 0
        ok = updater.set_next_version(None if args.clear else args.bundle_id)
        _emit({"ok": ok})
        return 0 if ok else 1
    raise ValueError(f"Unhandled command: {command}")


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entrypoint."""
    args = _parse_args(argv)
    level = configure_root(args.log_level)
    log.debug("Log level %s", level_name(level))
    settings = UpdaterSettings.from_env()
    if args.home:
        settings = settings.rooted_at(Path(args.home).expanduser())
    updater = BundleUpdater(settings)
    try:
        return run(updater, args)
    except BundleError as exc:
        log.error("%s (%s)", exc.message, exc.code)
        payload = {"error": exc.code, "message": exc.message, "hint": exc.hint}
        if isinstance(exc, DownloadError):
            payload["bundle_id"] = exc.bundle_id
        _emit(payload)
        return 2
    except ValueError as exc:
        log.error("%s", exc)
        _emit({"error": "usage", "message": str(exc)})
        return 2


__all__ = ["main", "run"]
