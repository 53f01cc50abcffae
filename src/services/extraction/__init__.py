"""Spend extraction package."""

from src.services.extraction.bindings import (
    DEFAULT_FIELD_BINDINGS,
    FieldBinding,
    group_fields,
    validate_bindings,
)
from src.services.extraction.gemini_service import (
    ExtractorInterface,
    GeminiExtractor,
)
from src.services.extraction.prompts import PROMPT_TEMPLATES, render_prompt

__all__ = [
    "DEFAULT_FIELD_BINDINGS",
    "ExtractorInterface",
    "FieldBinding",
    "GeminiExtractor",
    "PROMPT_TEMPLATES",
    "group_fields",
    "render_prompt",
    "validate_bindings",
]
