"""Tests for LLM-backed metadata generation."""

from __future__ import annotations

import pytest

from metabot.catalog.flathub import AppInfo, CatalogError
from metabot.config import PatchConfig
from metabot.generation.cleanup import GenerationError
from metabot.generation.generator import MetadataGenerator
from metabot.generation.prompts import PromptBuilder

APP = AppInfo(
    id="tv.kodi.Kodi",
    name="Kodi",
    summary="Ultimate entertainment center",
    description="<p>Kodi plays media.</p>",
    categories=["AudioVideo"],
)


class FakeRunner:
    def __init__(self, *replies: str) -> None:
        self.replies = list(replies)
        self.calls: list[tuple[str, str | None]] = []

    def run(self, prompt: str, *, system: str | None = None) -> str:
        self.calls.append((prompt, system))
        return self.replies.pop(0)


class FakeCatalog:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail

    def search(self, query, limit=10):
        if self.fail:
            raise CatalogError("offline")
        return [
            {"app_id": "tv.kodi.Kodi", "name": "Kodi"},
            {"app_id": "org.videolan.VLC", "name": "VLC", "keywords": ["video", "player", "media", "dvd"]},
        ]

    def get_categories(self):
        if self.fail:
            raise CatalogError("offline")
        return ["AudioVideo", "Game"]


def test_generate_keywords_includes_catalog_context() -> None:
    runner = FakeRunner("media center, HTPC, media center, streaming")
    generator = MetadataGenerator(runner, catalog=FakeCatalog(), config=PatchConfig(max_keywords=3))

    keywords = generator.generate_keywords(APP)

    assert keywords == ["media center", "htpc", "streaming"]
    prompt, system = runner.calls[0]
    assert "Name: Kodi" in prompt
    assert "- VLC: video, player, media" in prompt
    assert "AudioVideo, Game" in prompt
    assert system is not None and "never exceed 3" in system


def test_generate_keywords_tolerates_catalog_failures() -> None:
    runner = FakeRunner("media, player")
    generator = MetadataGenerator(runner, catalog=FakeCatalog(fail=True))

    assert generator.generate_keywords(APP) == ["media", "player"]
    assert "Similar apps" not in runner.calls[0][0]


def test_generate_summary_and_description() -> None:
    runner = FakeRunner("Organize and play your media.", "Kodi organizes media.\n\nIt plays everything.")
    generator = MetadataGenerator(runner)

    assert generator.generate_summary(APP) == "Organize and play your media"
    assert generator.generate_description(APP) == (
        "<p>\n  Kodi organizes media.\n</p>\n<p>\n  It plays everything.\n</p>"
    )
    assert "at most 35 characters" in runner.calls[0][0]


def test_runner_errors_become_generation_errors() -> None:
    class BrokenRunner:
        def run(self, prompt, *, system=None):
            raise RuntimeError("connection refused")

    with pytest.raises(GenerationError, match="Error generating summary"):
        MetadataGenerator(BrokenRunner()).generate_summary(APP)


def test_prompt_builder_prefers_custom_templates(tmp_path) -> None:
    (tmp_path / "summary_user.j2").write_text("Custom for {{ app.name }}", encoding="utf-8")

    prompt = PromptBuilder(tmp_path).build("summary", app=APP, max_length=20)

    assert prompt.user == "Custom for Kodi"
    assert "under 20 characters" in prompt.system


def test_prompt_builder_rejects_unknown_kind() -> None:
    with pytest.raises(ValueError):
        PromptBuilder().build("changelog")
