"""
Spend Extraction using Gemini

DESIGN DECISION: Each ExtractionResult field is bound to its own prompt,
model and sampling parameters (see bindings.py). Fields that share a
binding are asked in one call, the calls run concurrently and their JSON
answers are merged and validated as one ExtractionResult.

The extraction is all-or-nothing: if any call fails or any answer is
unusable, a single ExtractionError is raised and no partial result is
returned. There is no retry here; the user is asked to resend instead.
"""

import asyncio
import json
from abc import ABC, abstractmethod
from typing import Any, Callable, Mapping, Optional

import google.generativeai as genai
import structlog
from pydantic import ValidationError as PydanticValidationError

from src.errors import ExtractionError
from src.models.spend import Asset, ExtractionResult
from src.services.extraction.bindings import (
    DEFAULT_FIELD_BINDINGS,
    FieldBinding,
    group_fields,
    validate_bindings,
)
from src.services.extraction.prompts import PROMPT_TEMPLATES, render_prompt


logger = structlog.get_logger(__name__)


ModelFactory = Callable[[str, dict], Any]


class ExtractorInterface(ABC):
    """
    Abstract extraction capability.

    Takes the ordered assets of one message and returns a fully
    populated ExtractionResult.
    """

    @abstractmethod
    async def extract(self, assets: list[Asset]) -> ExtractionResult:
        """
        Extract spend data from assets.

        Raises:
            ExtractionError: If the call fails or returns unusable data
        """
        pass


def _gemini_model_factory(model_name: str, generation_config: dict) -> Any:
    return genai.GenerativeModel(
        model_name=model_name,
        generation_config=generation_config,
    )


def _asset_to_part(asset: Asset) -> Any:
    """Convert an asset to a Gemini content part."""
    if asset.is_binary:
        return {"mime_type": asset.mime_type, "data": asset.payload}
    return asset.payload


def _parse_json_object(text: str) -> dict:
    """Find and decode the JSON object in a model answer."""
    start = text.find("{")
    end = text.rfind("}") + 1
    if start < 0 or end <= start:
        raise ValueError("No JSON object in model response")
    data = json.loads(text[start:end])
    if not isinstance(data, dict):
        raise ValueError("Model response is not a JSON object")
    return data


class GeminiExtractor(ExtractorInterface):
    """
    Extraction service backed by Gemini models.

    IMPORTANT BOUNDARIES:
    1. This service ONLY extracts - it never computes totals or persists
    2. Answers are validated against ExtractionResult before returning
    3. A blank currency is replaced by the configured default currency
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        bindings: Optional[Mapping[str, FieldBinding]] = None,
        default_currency: str = "",
        model_factory: Optional[ModelFactory] = None,
    ):
        self._bindings = dict(bindings or DEFAULT_FIELD_BINDINGS)
        validate_bindings(self._bindings, set(PROMPT_TEMPLATES))

        if api_key:
            genai.configure(api_key=api_key)

        self._default_currency = default_currency.upper()
        self._model_factory = model_factory or _gemini_model_factory
        self._groups = group_fields(self._bindings)
        self._models: dict[FieldBinding, Any] = {}

    def _get_model(self, binding: FieldBinding) -> Any:
        """Get or create the model client for a binding."""
        if binding not in self._models:
            self._models[binding] = self._model_factory(
                binding.model,
                binding.generation_config(),
            )
        return self._models[binding]

    async def _ask(
        self,
        binding: FieldBinding,
        fields: list[str],
        parts: list[Any],
    ) -> dict:
        """Run one model call and return the answers for its fields."""
        prompt = render_prompt(binding.prompt_id, fields)
        model = self._get_model(binding)

        try:
            response = await model.generate_content_async([prompt, *parts])
            data = _parse_json_object(response.text)
        except Exception as e:
            logger.warning(
                "extraction_call_failed",
                prompt_id=binding.prompt_id,
                model=binding.model,
                error=str(e),
            )
            raise ExtractionError(
                f"{binding.model} ({binding.prompt_id}) failed: {e}",
                "The receipt could not be read. Please try again.",
            ) from e

        missing = [name for name in fields if name not in data]
        if missing:
            raise ExtractionError(
                f"{binding.model} ({binding.prompt_id}) omitted fields: {missing}",
                "The receipt could not be read. Please try again.",
            )

        logger.debug(
            "extraction_call_completed",
            prompt_id=binding.prompt_id,
            model=binding.model,
            fields=fields,
        )
        return {name: data[name] for name in fields}

    async def extract(self, assets: list[Asset]) -> ExtractionResult:
        if not assets:
            raise ExtractionError("No assets to extract from", "Nothing to read.")

        parts = [_asset_to_part(asset) for asset in assets]

        tasks = [
            asyncio.ensure_future(self._ask(binding, fields, parts))
            for binding, fields in self._groups.items()
        ]
        try:
            answers = await asyncio.gather(*tasks)
        except BaseException:
            # One failed group fails the call; stop the others too.
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        merged: dict[str, Any] = {}
        for answer in answers:
            merged.update(answer)

        if not merged.get("currency") and self._default_currency:
            merged["currency"] = self._default_currency

        try:
            return ExtractionResult.model_validate(merged)
        except PydanticValidationError as e:
            raise ExtractionError(
                f"Extraction returned invalid data: {e}",
                "The receipt data did not make sense. Please try again.",
            ) from e
