"""LLM-backed generation of keywords, summaries and descriptions."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol

from ..catalog.flathub import AppInfo, CatalogError, FlathubClient
from ..config import PatchConfig
from ..logging import get_logger
from .cleanup import GenerationError, clean_description, clean_summary, parse_keywords
from .prompts import PromptBuilder

TARGET_KEYWORDS = 5
SIMILAR_APPS_LIMIT = 4


class TextRunner(Protocol):
    def run(self, prompt: str, *, system: str | None = None) -> str: ...


class MetadataGenerator:
    """Produces field values for one catalog entry."""

    def __init__(
        self,
        runner: TextRunner,
        *,
        catalog: FlathubClient | None = None,
        prompt_builder: PromptBuilder | None = None,
        config: PatchConfig | None = None,
    ) -> None:
        self.runner = runner
        self.catalog = catalog
        self.prompt_builder = prompt_builder or PromptBuilder()
        self.config = config or PatchConfig()
        self.logger = get_logger("generation")

    def generate_keywords(self, app: AppInfo) -> List[str]:
        prompt = self.prompt_builder.build(
            "keywords",
            app=app,
            similar_apps=self._similar_apps(app),
            categories=self._categories(),
            target_keywords=TARGET_KEYWORDS,
            max_keywords=self.config.max_keywords,
        )
        raw = self._invoke("keywords", prompt.user, prompt.system)
        return parse_keywords(raw, self.config.max_keywords)

    def generate_summary(self, app: AppInfo) -> str:
        prompt = self.prompt_builder.build(
            "summary", app=app, max_length=self.config.summary_max_length
        )
        raw = self._invoke("summary", prompt.user, prompt.system)
        summary = clean_summary(raw, app.name)
        if len(summary) > self.config.summary_max_length:
            self.logger.warning(
                "Generated summary is %d characters (max %d)",
                len(summary),
                self.config.summary_max_length,
            )
        return summary

    def generate_description(self, app: AppInfo) -> str:
        prompt = self.prompt_builder.build("description", app=app)
        raw = self._invoke("description", prompt.user, prompt.system)
        if not any(tag in raw for tag in ("<p>", "<ul>", "<ol>")):
            self.logger.warning("Description missing markup, wrapping in <p> tags")
        return clean_description(raw)

    def _invoke(self, kind: str, prompt: str, system: str) -> str:
        try:
            return self.runner.run(prompt, system=system)
        except RuntimeError as exc:
            raise GenerationError(f"Error generating {kind}: {exc}") from exc

    def _similar_apps(self, app: AppInfo) -> List[Dict[str, Any]]:
        if self.catalog is None:
            return []
        term = app.id.rsplit(".", 1)[-1]
        try:
            hits = self.catalog.search(term, SIMILAR_APPS_LIMIT)
        except CatalogError as exc:
            self.logger.debug("Similar app lookup failed: %s", exc)
            return []
        similar = []
        for hit in hits[1:SIMILAR_APPS_LIMIT]:
            if hit.get("app_id") == app.id:
                continue
            keywords = hit.get("keywords")
            similar.append(
                {
                    "name": hit.get("name") or hit.get("app_id"),
                    "keywords": list(keywords)[:3] if isinstance(keywords, list) else [],
                }
            )
        return similar

    def _categories(self) -> Optional[List[str]]:
        if self.catalog is None:
            return None
        try:
            return self.catalog.get_categories() or None
        except CatalogError as exc:
            self.logger.debug("Category lookup failed: %s", exc)
            return None


__all__ = ["GenerationError", "MetadataGenerator", "TextRunner"]
