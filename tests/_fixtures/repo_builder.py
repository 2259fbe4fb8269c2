"""Helper utilities for constructing temporary repositories in tests."""

from __future__ import annotations

import textwrap
from pathlib import Path
from typing import List, Mapping

from metabot.discovery import MetadataDiscovery
from metabot.models import Document


class RepoBuilder:
    """Utility for writing files into a throwaway repository and rediscovering them."""

    def __init__(self, tmp_path: Path) -> None:
        self.root = tmp_path / "repo"
        self.root.mkdir()

    def write(self, files: Mapping[str, str]) -> None:
        """Write `path -> contents` entries into the repository."""
        for relative, content in files.items():
            path = self.root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            normalised = textwrap.dedent(content).lstrip("\n")
            with path.open("w", encoding="utf-8", newline="") as handle:
                handle.write(normalised)

    def discover(self, app_id: str, exclude_paths: List[str] | None = None) -> List[Document]:
        """Return the metadata documents discovery finds for ``app_id``."""
        return MetadataDiscovery(exclude_paths).find(self.root, app_id)

    def read(self, relative: str) -> str:
        with (self.root / relative).open("r", encoding="utf-8", newline="") as handle:
            return handle.read()

    def path(self) -> Path:
        """Return the repository root path."""
        return self.root


__all__ = ["RepoBuilder"]
