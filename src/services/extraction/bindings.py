"""
Field bindings for spend extraction.

Each output field of ExtractionResult names the prompt it is asked with,
the model that answers it and the sampling parameters for that call.
The mapping is plain data so it can be inspected, overridden and tested
without talking to any model.
"""

from typing import Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from src.models.spend import ExtractionResult


class FieldBinding(BaseModel):
    """Prompt, model and sampling configuration for one output field."""
    model_config = ConfigDict(frozen=True)

    prompt_id: str = Field(..., min_length=1)
    model: str = Field(..., min_length=1)
    temperature: float = Field(default=0.0, ge=0.0, le=2.0)
    top_k: Optional[int] = Field(default=None, ge=1)

    def generation_config(self) -> dict:
        """Generation config for the Gemini SDK."""
        config = {
            "temperature": self.temperature,
            "response_mime_type": "application/json",
        }
        if self.top_k is not None:
            config["top_k"] = self.top_k
        return config


FAST_MODEL = "gemini-1.5-flash"
RECEIPT_MODEL = "gemini-2.5-pro"

DEFAULT_FIELD_BINDINGS: dict[str, FieldBinding] = {
    "currency": FieldBinding(prompt_id="currency", model=FAST_MODEL, temperature=0.0, top_k=1),
    "spend": FieldBinding(prompt_id="receipt", model=RECEIPT_MODEL, temperature=0.0, top_k=1),
    "positions": FieldBinding(prompt_id="receipt", model=RECEIPT_MODEL, temperature=0.0, top_k=1),
    "cashier_name": FieldBinding(prompt_id="cashier", model=FAST_MODEL, temperature=0.0, top_k=1),
}


def validate_bindings(
    bindings: Mapping[str, FieldBinding],
    prompt_ids: set[str],
) -> None:
    """
    Check a binding map against ExtractionResult and the known prompts.

    Every ExtractionResult field must be bound exactly once and every
    binding must point at an existing prompt template.

    Raises:
        ValueError: If the bindings are incomplete or inconsistent
    """
    expected = set(ExtractionResult.model_fields)
    bound = set(bindings)

    unknown = bound - expected
    if unknown:
        raise ValueError(f"Bindings for unknown fields: {sorted(unknown)}")

    missing = expected - bound
    if missing:
        raise ValueError(f"No binding for fields: {sorted(missing)}")

    for field_name, binding in bindings.items():
        if binding.prompt_id not in prompt_ids:
            raise ValueError(
                f"Field '{field_name}' uses unknown prompt '{binding.prompt_id}'"
            )


def group_fields(
    bindings: Mapping[str, FieldBinding],
) -> dict[FieldBinding, list[str]]:
    """
    Group fields that share an identical binding.

    Fields in one group are requested with a single model call.
    Group and field order follow the order of `bindings`.
    """
    groups: dict[FieldBinding, list[str]] = {}
    for field_name, binding in bindings.items():
        groups.setdefault(binding, []).append(field_name)
    return groups
