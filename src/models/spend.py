"""
Core Data Models for the Spend Tracker Bot

These models define the schemas for all data flowing through the
extraction pipeline:

    IncomingMessage -> [Asset] -> ExtractionResult -> [LedgerRecord]

DESIGN DECISION: We use Pydantic v2 so that whatever the extraction
service returns is validated before it can reach the ledger. Assets and
extraction results are transient; only LedgerRecord is ever persisted.
"""

from datetime import datetime
from enum import Enum
from typing import Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class SourceKind(str, Enum):
    """Kind of chat message a spend was reported with."""
    TEXT = "text"
    PHOTO = "photo"
    VOICE = "voice"
    AUDIO = "audio"


class AssetKind(str, Enum):
    """Kind of payload handed to the extraction service."""
    TEXT = "text"
    IMAGE = "image"
    AUDIO = "audio"


class PipelineState(str, Enum):
    """
    States of one extraction event.

    The flow is strictly linear; any failure jumps straight to FAILED.
    """
    RECEIVED = "received"
    ASSETS_BUILT = "assets_built"
    EXTRACTED = "extracted"
    NORMALIZED = "normalized"
    PERSISTED = "persisted"
    REPLIED = "replied"
    FAILED = "failed"


UNKNOWN_ITEM_NAME = "Unknown item"


# =============================================================================
# PLATFORM INPUT
# =============================================================================

class Attachment(BaseModel):
    """A file attached to a chat message, as described by the platform."""

    file_id: str = Field(
        ...,
        min_length=1,
        description="Platform file identifier used for retrieval"
    )
    file_size: Optional[int] = Field(
        default=None,
        ge=0,
        description="Size in bytes, if the platform reports it"
    )


class IncomingMessage(BaseModel):
    """
    Platform-independent view of one chat message.

    Only the sender identity, text and attachment descriptors are kept;
    everything else about the platform stays in the adapter.
    """

    user_id: int = Field(
        ...,
        description="Sender id as supplied by the platform"
    )
    text: Optional[str] = None
    photo: Optional[Attachment] = None
    voice: Optional[Attachment] = None
    audio: Optional[Attachment] = None


# =============================================================================
# EXTRACTION INPUT
# =============================================================================

class Asset(BaseModel):
    """
    One normalized extraction input unit.

    Build these with the per-kind constructors rather than directly,
    they pin the MIME type for each kind.
    """
    model_config = ConfigDict(frozen=True)

    kind: AssetKind
    payload: Union[bytes, str]
    mime_type: str

    @model_validator(mode='after')
    def validate_payload(self) -> 'Asset':
        """Text assets carry a string, binary assets carry bytes."""
        if self.kind == AssetKind.TEXT:
            if not isinstance(self.payload, str):
                raise ValueError("Text asset payload must be a string")
        elif not isinstance(self.payload, bytes):
            raise ValueError(f"{self.kind.value} asset payload must be bytes")
        return self

    @property
    def is_binary(self) -> bool:
        return self.kind != AssetKind.TEXT

    @classmethod
    def from_text(cls, text: str) -> 'Asset':
        return cls(kind=AssetKind.TEXT, payload=text, mime_type="text/plain")

    @classmethod
    def from_photo(cls, data: bytes) -> 'Asset':
        return cls(kind=AssetKind.IMAGE, payload=data, mime_type="image/jpeg")

    @classmethod
    def from_voice(cls, data: bytes) -> 'Asset':
        return cls(kind=AssetKind.AUDIO, payload=data, mime_type="audio/ogg")

    @classmethod
    def from_audio(cls, data: bytes) -> 'Asset':
        return cls(kind=AssetKind.AUDIO, payload=data, mime_type="audio/mpeg")


# =============================================================================
# EXTRACTION OUTPUT
# =============================================================================

class Position(BaseModel):
    """One receipt line item."""
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    name: str = Field(
        ...,
        description="Item name as printed or spoken"
    )
    price: float = Field(
        ...,
        description="Item price in the receipt currency"
    )


class ExtractionResult(BaseModel):
    """
    Structured output of one extraction call.

    `spend` of 0 means the total was not stated and must be derived
    from the positions.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    currency: str = Field(
        default="",
        description="Currency code, e.g. THB"
    )
    spend: float = Field(
        default=0.0,
        description="Stated total, 0 if unset"
    )
    positions: list[Position] = Field(
        default_factory=list,
        description="Line items in receipt order"
    )
    cashier_name: str = Field(
        default="",
        description="Cashier name, empty if not printed"
    )

    @field_validator('currency')
    @classmethod
    def normalize_currency(cls, v: str) -> str:
        return v.upper()

    @field_validator('spend', mode='before')
    @classmethod
    def none_spend_is_unset(cls, v):
        """Models sometimes answer null for a missing total."""
        return 0.0 if v is None else v

    @field_validator('positions', mode='before')
    @classmethod
    def none_positions_is_empty(cls, v):
        return [] if v is None else v

    @field_validator('cashier_name', mode='before')
    @classmethod
    def none_cashier_is_empty(cls, v):
        return "" if v is None else v


# =============================================================================
# LEDGER
# =============================================================================

class LedgerRecord(BaseModel):
    """
    One persisted item-level expense entry.

    All records from one extraction event share spend_total, currency,
    cashier_name, payload_json and the correlation id prefix of `id`.
    """

    id: str = Field(
        ...,
        min_length=1,
        description="Correlation id, or '{correlation_id}-{index}' for itemized receipts"
    )
    correlation_id: str = Field(
        ...,
        min_length=1,
        description="Id shared by every record of one extraction event"
    )
    user_id: int
    created_at: datetime
    source: SourceKind
    raw_text: Optional[str] = None
    spend_total: float
    currency: str
    item_name: str
    item_price: float
    cashier_name: str = ""
    payload_json: str = Field(
        ...,
        description="Serialized ExtractionResult the record was derived from"
    )

    @model_validator(mode='after')
    def validate_id_prefix(self) -> 'LedgerRecord':
        if self.id != self.correlation_id and not self.id.startswith(f"{self.correlation_id}-"):
            raise ValueError("Record id must start with its correlation id")
        return self

    def extraction(self) -> ExtractionResult:
        """Deserialize the extraction result this record came from."""
        return ExtractionResult.model_validate_json(self.payload_json)
