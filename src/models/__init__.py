"""
Data Models Package

This package contains all Pydantic models used by the spend tracker.
All data flowing through the pipeline must conform to these schemas.
"""

from src.models.spend import (
    UNKNOWN_ITEM_NAME,
    Asset,
    AssetKind,
    Attachment,
    ExtractionResult,
    IncomingMessage,
    LedgerRecord,
    PipelineState,
    Position,
    SourceKind,
)
from src.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Spend models
    "UNKNOWN_ITEM_NAME",
    "Asset",
    "AssetKind",
    "Attachment",
    "ExtractionResult",
    "IncomingMessage",
    "LedgerRecord",
    "PipelineState",
    "Position",
    "SourceKind",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
