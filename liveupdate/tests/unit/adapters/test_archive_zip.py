"""Tests for safe zip extraction."""

from __future__ import annotations

import zipfile

import pytest

from liveupdate.adapters.archive_zip import ZipArchiveAdapter
from liveupdate.domain.errors import ExtractionError
from liveupdate.tests.unit.helpers import corrupt_deflate_zip, write_zip


def test_extracts_nested_entries(tmp_path):
    archive = write_zip(tmp_path / "bundle.zip", {"index.html": "<html>", "js/app.js": "run()"})
    target = tmp_path / "out"

    ZipArchiveAdapter().extract(archive, target)

    assert (target / "index.html").read_text(encoding="utf-8") == "<html>"
    assert (target / "js" / "app.js").read_text(encoding="utf-8") == "run()"


def test_rejects_non_zip_file(tmp_path):
    archive = tmp_path / "bundle.zip"
    archive.write_bytes(b"definitely not a zip")

    with pytest.raises(ExtractionError) as excinfo:
        ZipArchiveAdapter().extract(archive, tmp_path / "out")

    assert excinfo.value.code == "bundle.cannot_unzip"


def test_rejects_path_traversal(tmp_path):
    archive = tmp_path / "evil.zip"
    with zipfile.ZipFile(archive, "w") as handle:
        handle.writestr("../escape.txt", "boom")

    with pytest.raises(ExtractionError):
        ZipArchiveAdapter().extract(archive, tmp_path / "out")

    assert not (tmp_path / "escape.txt").exists()


def test_rejects_symlink_entries(tmp_path):
    archive = tmp_path / "link.zip"
    entry = zipfile.ZipInfo("link")
    entry.external_attr = (0o120777 << 16)
    with zipfile.ZipFile(archive, "w") as handle:
        handle.writestr(entry, "/etc/passwd")

    with pytest.raises(ExtractionError):
        ZipArchiveAdapter().extract(archive, tmp_path / "out")


def test_corrupt_compressed_stream_is_an_extraction_error(tmp_path):
    archive = tmp_path / "damaged.zip"
    archive.write_bytes(corrupt_deflate_zip())

    with pytest.raises(ExtractionError) as excinfo:
        ZipArchiveAdapter().extract(archive, tmp_path / "out")

    assert excinfo.value.code == "bundle.cannot_unzip"
    assert excinfo.value.__cause__ is not None
