"""Metadata generation from catalog entries."""

from .cleanup import GenerationError, clean_description, clean_summary, parse_keywords
from .generator import MetadataGenerator
from .prompts import Prompt, PromptBuilder

__all__ = [
    "GenerationError",
    "MetadataGenerator",
    "Prompt",
    "PromptBuilder",
    "clean_description",
    "clean_summary",
    "parse_keywords",
]
