"""Tests for metadata file discovery."""

from __future__ import annotations

from pathlib import Path

import pytest

from metabot.discovery import MetadataDiscovery, app_name_from_id, read_document
from metabot.models import Dialect


def _names(documents) -> list[str]:
    return [Path(doc.path).name for doc in documents]


def test_app_name_from_id() -> None:
    assert app_name_from_id("tv.kodi.Kodi") == "kodi"
    assert app_name_from_id("single") == "single"


def test_find_orders_app_id_then_app_name_then_others(repo_builder) -> None:
    repo_builder.write(
        {
            "aaa/other.desktop": "[Desktop Entry]\n",
            "data/kodi.appdata.xml": "<component/>\n",
            "data/tv.kodi.Kodi.metainfo.xml.in": "<component/>\n",
            "data/tv.kodi.Kodi.desktop": "[Desktop Entry]\n",
            "README.md": "# readme\n",
        }
    )

    documents = repo_builder.discover("tv.kodi.Kodi")

    assert _names(documents) == [
        "tv.kodi.Kodi.desktop",
        "tv.kodi.Kodi.metainfo.xml.in",
        "kodi.appdata.xml",
        "other.desktop",
    ]
    assert documents[1].dialect is Dialect.COMPONENT
    assert documents[1].is_template is True


def test_find_skips_build_directories_and_excludes(repo_builder) -> None:
    repo_builder.write(
        {
            ".git/hooks/x.desktop": "[Desktop Entry]\n",
            "build/app.desktop": "[Desktop Entry]\n",
            "vendor/lib/lib.desktop": "[Desktop Entry]\n",
            "tests/fixture.metainfo.xml": "<component/>\n",
            "data/app.desktop": "[Desktop Entry]\n",
        }
    )

    documents = repo_builder.discover("org.example.App", exclude_paths=["vendor/", "tests/*"])

    assert _names(documents) == ["app.desktop"]


def test_find_skips_non_utf8_files(repo_builder) -> None:
    repo_builder.write({"data/good.desktop": "[Desktop Entry]\n"})
    (repo_builder.path() / "data" / "bad.desktop").write_bytes(b"\xff\xfe[Desktop Entry]\n")

    documents = repo_builder.discover("org.example.App")

    assert _names(documents) == ["good.desktop"]


def test_find_rejects_missing_or_file_roots(tmp_path: Path) -> None:
    discovery = MetadataDiscovery()
    with pytest.raises(FileNotFoundError):
        discovery.find(tmp_path / "missing", "org.example.App")

    file_path = tmp_path / "file.txt"
    file_path.write_text("x", encoding="utf-8")
    with pytest.raises(NotADirectoryError):
        discovery.find(file_path, "org.example.App")


def test_read_document_keeps_crlf(tmp_path: Path) -> None:
    path = tmp_path / "app.desktop"
    path.write_bytes(b"[Desktop Entry]\r\nName=App\r\n")

    document = read_document(path)

    assert document.content == "[Desktop Entry]\r\nName=App\r\n"
    assert document.dialect is Dialect.KEY_VALUE


def test_find_ignores_backup_copies_of_metadata_files(repo_builder) -> None:
    repo_builder.write(
        {
            "data/org.x.App.metainfo.xml": "<component/>\n",
            "data/org.x.App.metainfo.xml.orig": "<component/>\n",
            "data/org.x.App.appdata.xml.bak": "<component/>\n",
            "data/org.x.App.desktop~": "[Desktop Entry]\n",
        }
    )

    documents = repo_builder.discover("org.x.App")

    assert _names(documents) == ["org.x.App.metainfo.xml"]
