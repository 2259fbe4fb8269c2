"""Locating and loading metadata documents inside a cloned repository."""

from __future__ import annotations

import os
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Iterator, List, Sequence

from .logging import get_logger
from .models import Document
from .patching.classifier import classify

_EXCLUDED_DIRS = {
    ".git",
    ".hg",
    ".svn",
    ".venv",
    "node_modules",
    "__pycache__",
    ".flatpak-builder",
    "_build",
    "build",
    "target",
}

_SUFFIXES = (
    ".desktop",
    ".desktop.in",
    ".metainfo.xml",
    ".metainfo.xml.in",
    ".appdata.xml",
    ".appdata.xml.in",
)

logger = get_logger("discovery")


def app_name_from_id(app_id: str) -> str:
    """``tv.kodi.Kodi`` -> ``kodi``."""
    return app_id.rsplit(".", 1)[-1].lower()


def _candidate_names(app_id: str) -> List[List[str]]:
    app_name = app_name_from_id(app_id)
    return [
        [f"{app_id}{suffix}" for suffix in _SUFFIXES],
        [f"{app_name}{suffix}" for suffix in _SUFFIXES],
    ]


def _is_excluded(rel_path: str, patterns: Sequence[str]) -> bool:
    for pattern in patterns:
        cleaned = pattern.strip().rstrip("/")
        if not cleaned:
            continue
        if fnmatchcase(rel_path, cleaned) or rel_path.startswith(f"{cleaned}/"):
            return True
    return False


def _iter_metadata_files(root: Path, exclude_paths: Sequence[str]) -> Iterator[Path]:
    for dirpath, dirnames, filenames in os.walk(root):
        current_dir = Path(dirpath)
        rel_dir = current_dir.relative_to(root).as_posix() if current_dir != root else ""

        kept = []
        for name in sorted(dirnames):
            if name in _EXCLUDED_DIRS:
                continue
            rel_path = f"{rel_dir}/{name}" if rel_dir else name
            if _is_excluded(rel_path, exclude_paths):
                continue
            kept.append(name)
        dirnames[:] = kept

        for filename in sorted(filenames):
            if not filename.endswith(_SUFFIXES):
                continue
            rel_path = f"{rel_dir}/{filename}" if rel_dir else filename
            if _is_excluded(rel_path, exclude_paths):
                continue
            yield current_dir / filename


def read_document(path: Path | str) -> Document:
    """Load and classify one metadata file, keeping its newlines intact."""
    file_path = Path(path)
    classification = classify(file_path)
    with file_path.open("r", encoding="utf-8", newline="") as handle:
        content = handle.read()
    return Document(
        path=str(file_path),
        dialect=classification.dialect,
        is_template=classification.is_template,
        content=content,
    )


class MetadataDiscovery:
    """Walks a repository for desktop entries and component descriptors."""

    def __init__(self, exclude_paths: Sequence[str] | None = None) -> None:
        self.exclude_paths = list(exclude_paths or [])

    def find(self, root: str | Path, app_id: str) -> List[Document]:
        """Return metadata documents, files named after the app first."""
        root_path = Path(root).expanduser().resolve()
        if not root_path.exists():
            raise FileNotFoundError(f"Repository path not found: {root}")
        if not root_path.is_dir():
            raise NotADirectoryError(f"Repository path is not a directory: {root}")

        found = list(_iter_metadata_files(root_path, self.exclude_paths))
        ordered: List[Path] = []
        for names in _candidate_names(app_id):
            ordered.extend(path for path in found if path.name in names and path not in ordered)
        ordered.extend(path for path in found if path not in ordered)

        documents: List[Document] = []
        for path in ordered:
            try:
                documents.append(read_document(path))
            except UnicodeDecodeError:
                logger.warning("Skipping %s: not valid UTF-8", path)
        logger.debug("Discovered %d metadata file(s) under %s", len(documents), root_path)
        return documents


__all__ = ["MetadataDiscovery", "app_name_from_id", "read_document"]
