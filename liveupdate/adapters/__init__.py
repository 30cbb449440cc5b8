"""Adapter package for external I/O implementations.

Purpose:
    Collect concrete implementations for domain ports (HTTP transport, zip
    extraction, durable key-value storage, and an in-memory store double)
    used by use cases.

Dependencies:
    Individual submodules depend on ``requests``, ``zipfile``, filesystem
    APIs, and domain protocol definitions.

Call context:
    Imported by ``liveupdate.app.updater`` (for runtime wiring) and by tests
    (for doubles and transport-level behavior verification).
"""
