"""
Tests for field bindings and the Gemini extractor.

The Gemini SDK is never called; a fake model factory stands in for it.
"""

import asyncio
import json
from types import SimpleNamespace

import pytest

from src.errors import ExtractionError
from src.models.spend import Asset, ExtractionResult, Position, SourceKind
from src.normalization import build_records
from src.services.extraction import (
    DEFAULT_FIELD_BINDINGS,
    PROMPT_TEMPLATES,
    FieldBinding,
    GeminiExtractor,
    group_fields,
    render_prompt,
    validate_bindings,
)


class FakeModel:
    """Answers every call with a fixed JSON payload."""

    def __init__(self, name: str, config: dict, answer):
        self.name = name
        self.config = config
        self.answer = answer
        self.calls = []

    async def generate_content_async(self, contents):
        self.calls.append(contents)
        if isinstance(self.answer, Exception):
            raise self.answer
        return SimpleNamespace(text=self.answer)


class FakeModelFactory:
    """Creates FakeModels with answers keyed by model name."""

    def __init__(self, answers: dict):
        self.answers = answers
        self.models: list[FakeModel] = []

    def __call__(self, name: str, config: dict) -> FakeModel:
        model = FakeModel(name, config, self.answers[name])
        self.models.append(model)
        return model


def _answers(fast: dict, receipt: dict) -> dict:
    return {
        "gemini-1.5-flash": json.dumps(fast),
        "gemini-2.5-pro": json.dumps(receipt),
    }


class TestBindings:
    """Tests for the declarative field binding map."""

    def test_defaults_cover_every_field(self):
        validate_bindings(DEFAULT_FIELD_BINDINGS, set(PROMPT_TEMPLATES))
        assert set(DEFAULT_FIELD_BINDINGS) == set(ExtractionResult.model_fields)

    def test_spend_and_positions_share_one_call(self):
        groups = group_fields(DEFAULT_FIELD_BINDINGS)
        assert ["spend", "positions"] in groups.values()
        assert len(groups) == 3

    def test_unknown_field_rejected(self):
        bindings = dict(DEFAULT_FIELD_BINDINGS)
        bindings["tip"] = DEFAULT_FIELD_BINDINGS["spend"]
        with pytest.raises(ValueError, match="unknown fields"):
            validate_bindings(bindings, set(PROMPT_TEMPLATES))

    def test_missing_field_rejected(self):
        bindings = dict(DEFAULT_FIELD_BINDINGS)
        del bindings["currency"]
        with pytest.raises(ValueError, match="No binding"):
            validate_bindings(bindings, set(PROMPT_TEMPLATES))

    def test_unknown_prompt_rejected(self):
        bindings = dict(DEFAULT_FIELD_BINDINGS)
        bindings["currency"] = FieldBinding(prompt_id="nope", model="m")
        with pytest.raises(ValueError, match="unknown prompt"):
            validate_bindings(bindings, set(PROMPT_TEMPLATES))

    def test_generation_config(self):
        config = FieldBinding(prompt_id="receipt", model="m", temperature=0.0, top_k=1).generation_config()
        assert config == {
            "temperature": 0.0,
            "top_k": 1,
            "response_mime_type": "application/json",
        }

    def test_render_prompt_lists_fields(self):
        prompt = render_prompt("receipt", ["spend", "positions"])
        assert '"spend"' in prompt
        assert '"positions"' in prompt
        assert '"currency"' not in prompt


class TestGeminiExtractor:
    """Tests for GeminiExtractor with a fake model factory."""

    @pytest.mark.asyncio
    async def test_merges_answers_from_all_calls(self):
        factory = FakeModelFactory(_answers(
            fast={"currency": "thb", "cashier_name": "Anna"},
            receipt={"spend": 0, "positions": [{"name": "milk", "price": 30}]},
        ))
        extractor = GeminiExtractor(model_factory=factory)

        result = await extractor.extract([Asset.from_text("milk 30 baht")])

        assert result == ExtractionResult(
            currency="THB",
            spend=0,
            positions=[Position(name="milk", price=30)],
            cashier_name="Anna",
        )
        # currency and cashier use separate prompts on the same model
        assert len(factory.models) == 3

    @pytest.mark.asyncio
    async def test_binary_assets_are_sent_as_blobs(self):
        factory = FakeModelFactory(_answers(
            fast={"currency": "THB", "cashier_name": ""},
            receipt={"spend": 12.5, "positions": []},
        ))
        extractor = GeminiExtractor(model_factory=factory)

        await extractor.extract([Asset.from_photo(b"jpeg-bytes")])

        for model in factory.models:
            contents = model.calls[0]
            assert isinstance(contents[0], str)
            assert contents[1] == {"mime_type": "image/jpeg", "data": b"jpeg-bytes"}

    @pytest.mark.asyncio
    async def test_blank_currency_uses_default(self):
        factory = FakeModelFactory(_answers(
            fast={"currency": "", "cashier_name": ""},
            receipt={"spend": 100, "positions": []},
        ))
        extractor = GeminiExtractor(default_currency="thb", model_factory=factory)

        result = await extractor.extract([Asset.from_text("100 for lunch")])

        assert result.currency == "THB"

    @pytest.mark.asyncio
    async def test_tolerates_text_around_json(self):
        answers = _answers(
            fast={"currency": "USD", "cashier_name": ""},
            receipt={"spend": 3, "positions": []},
        )
        answers["gemini-2.5-pro"] = "Here you go:\n" + answers["gemini-2.5-pro"] + "\n"
        extractor = GeminiExtractor(model_factory=FakeModelFactory(answers))

        result = await extractor.extract([Asset.from_text("coffee 3 dollars")])

        assert result.spend == 3

    @pytest.mark.asyncio
    async def test_failed_call_fails_whole_extraction(self):
        answers = _answers(
            fast={"currency": "THB", "cashier_name": ""},
            receipt={},
        )
        answers["gemini-2.5-pro"] = RuntimeError("quota exceeded")
        extractor = GeminiExtractor(model_factory=FakeModelFactory(answers))

        with pytest.raises(ExtractionError, match="quota exceeded"):
            await extractor.extract([Asset.from_text("x")])

    @pytest.mark.asyncio
    async def test_missing_field_is_extraction_error(self):
        factory = FakeModelFactory(_answers(
            fast={"currency": "THB", "cashier_name": ""},
            receipt={"spend": 10},
        ))
        extractor = GeminiExtractor(model_factory=factory)

        with pytest.raises(ExtractionError, match="omitted"):
            await extractor.extract([Asset.from_text("x")])

    @pytest.mark.asyncio
    async def test_invalid_data_is_extraction_error(self):
        factory = FakeModelFactory(_answers(
            fast={"currency": "THB", "cashier_name": ""},
            receipt={"spend": "lots", "positions": []},
        ))
        extractor = GeminiExtractor(model_factory=factory)

        with pytest.raises(ExtractionError):
            await extractor.extract([Asset.from_text("x")])

    @pytest.mark.asyncio
    async def test_non_json_answer_is_extraction_error(self):
        answers = _answers(fast={}, receipt={"spend": 1, "positions": []})
        answers["gemini-1.5-flash"] = "I cannot read this receipt."
        extractor = GeminiExtractor(model_factory=FakeModelFactory(answers))

        with pytest.raises(ExtractionError):
            await extractor.extract([Asset.from_text("x")])

    @pytest.mark.asyncio
    async def test_null_positions_become_unknown_item(self):
        factory = FakeModelFactory(_answers(
            fast={"currency": "THB", "cashier_name": ""},
            receipt={"spend": 100, "positions": None},
        ))
        extractor = GeminiExtractor(model_factory=factory)

        result = await extractor.extract([Asset.from_text("100 for lunch")])
        records, total = build_records(7, SourceKind.TEXT, "100 for lunch", result)

        assert result.positions == []
        assert total == 100
        assert [(r.item_name, r.item_price) for r in records] == [("Unknown item", 100)]

    @pytest.mark.asyncio
    async def test_long_item_name_and_currency_name(self):
        long_name = "x" * 250
        factory = FakeModelFactory(_answers(
            fast={"currency": "Thai Baht", "cashier_name": ""},
            receipt={"spend": 0, "positions": [{"name": long_name, "price": 5}]},
        ))
        extractor = GeminiExtractor(model_factory=factory)

        result = await extractor.extract([Asset.from_photo(b"jpeg-bytes")])

        assert result.currency == "THAI BAHT"
        assert result.positions == [Position(name=long_name, price=5)]

    @pytest.mark.asyncio
    async def test_failed_call_cancels_pending_calls(self):
        """Calls still waiting on the service are cancelled, not left running."""
        cancelled = []

        class HangingModel:
            def __init__(self, name):
                self.name = name

            async def generate_content_async(self, contents):
                try:
                    await asyncio.Event().wait()
                except asyncio.CancelledError:
                    cancelled.append(self.name)
                    raise

        class FailingModel:
            async def generate_content_async(self, contents):
                await asyncio.sleep(0)
                raise RuntimeError("quota exceeded")

        def factory(name, config):
            if name == "gemini-2.5-pro":
                return FailingModel()
            return HangingModel(name)

        extractor = GeminiExtractor(model_factory=factory)

        with pytest.raises(ExtractionError, match="quota exceeded"):
            await extractor.extract([Asset.from_text("x")])

        assert cancelled == ["gemini-1.5-flash", "gemini-1.5-flash"]

    @pytest.mark.asyncio
    async def test_no_assets(self):
        extractor = GeminiExtractor(model_factory=FakeModelFactory({}))
        with pytest.raises(ExtractionError):
            await extractor.extract([])

    def test_invalid_bindings_fail_at_construction(self):
        with pytest.raises(ValueError):
            GeminiExtractor(
                bindings={"currency": DEFAULT_FIELD_BINDINGS["currency"]},
                model_factory=FakeModelFactory({}),
            )
