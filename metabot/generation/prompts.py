"""Renders generation prompts from Jinja templates."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, StrictUndefined

PROMPT_KINDS = ("keywords", "summary", "description")


@dataclass(frozen=True)
class Prompt:
    """System and user message pair for one generation call."""

    system: str
    user: str


class PromptBuilder:
    """Loads ``<kind>_system.j2`` / ``<kind>_user.j2`` pairs.

    A custom ``templates_dir`` is searched before the bundled templates, so a
    project can override a single file.
    """

    def __init__(self, templates_dir: Path | None = None) -> None:
        default_dir = Path(__file__).with_name("templates")
        directories = [str(default_dir)]
        if templates_dir is not None and Path(templates_dir) != default_dir:
            directories.insert(0, str(templates_dir))
        self._env = Environment(
            loader=FileSystemLoader(directories),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            undefined=StrictUndefined,
        )

    def build(self, kind: str, **context: Any) -> Prompt:
        if kind not in PROMPT_KINDS:
            raise ValueError(f"Unknown prompt kind '{kind}'")
        system = self._env.get_template(f"{kind}_system.j2").render(**context)
        user = self._env.get_template(f"{kind}_user.j2").render(**context)
        return Prompt(system=system.strip(), user=user.strip())


__all__ = ["PROMPT_KINDS", "Prompt", "PromptBuilder"]
