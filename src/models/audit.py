"""
Audit Models for the Spend Tracker Bot

Every pipeline transition is recorded as an audit event so a single
extraction event can be traced end to end by its correlation id.

DESIGN DECISION: Audit events are append-only and go to the structured
log only. The ledger table is the single durable store.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEventType(str, Enum):
    """
    Types of events we audit.

    Every pipeline state has its own event type.
    """
    MESSAGE_RECEIVED = "message_received"
    ASSETS_BUILT = "assets_built"
    EXTRACTION_COMPLETED = "extraction_completed"
    RECORDS_NORMALIZED = "records_normalized"
    RECORDS_SAVED = "records_saved"
    REPLY_SENT = "reply_sent"
    STAGE_FAILED = "stage_failed"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # Correlation - ties every event of one extraction event together
    correlation_id: Optional[str] = None
    user_id: Optional[int] = None

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(default_factory=dict)

    # Error information (if applicable)
    error_type: Optional[str] = None
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "correlation_id": self.correlation_id,
            "user_id": self.user_id,
            "description": self.description,
            "details": self.details,
            "error_type": self.error_type,
            "error_message": self.error_message,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.message_received(correlation_id, user_id, "photo")
        event = AuditEventBuilder.records_saved(correlation_id, user_id, 3)
    """

    @staticmethod
    def message_received(
        correlation_id: str,
        user_id: int,
        source: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.MESSAGE_RECEIVED,
            correlation_id=correlation_id,
            user_id=user_id,
            description=f"Spend message received: {source}",
            details={"source": source},
        )

    @staticmethod
    def assets_built(
        correlation_id: str,
        user_id: int,
        asset_kinds: list[str],
        total_bytes: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ASSETS_BUILT,
            severity=AuditSeverity.DEBUG,
            correlation_id=correlation_id,
            user_id=user_id,
            description=f"Built {len(asset_kinds)} asset(s)",
            details={
                "asset_kinds": asset_kinds,
                "total_bytes": total_bytes,
            },
        )

    @staticmethod
    def extraction_completed(
        correlation_id: str,
        user_id: int,
        currency: str,
        spend: float,
        position_count: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTRACTION_COMPLETED,
            correlation_id=correlation_id,
            user_id=user_id,
            description=f"Extraction returned {position_count} position(s)",
            details={
                "currency": currency,
                "spend": spend,
                "position_count": position_count,
            },
        )

    @staticmethod
    def records_normalized(
        correlation_id: str,
        user_id: int,
        record_count: int,
        total: float,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORDS_NORMALIZED,
            severity=AuditSeverity.DEBUG,
            correlation_id=correlation_id,
            user_id=user_id,
            description=f"Normalized into {record_count} ledger record(s)",
            details={
                "record_count": record_count,
                "total": total,
            },
        )

    @staticmethod
    def records_saved(
        correlation_id: str,
        user_id: int,
        record_count: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORDS_SAVED,
            correlation_id=correlation_id,
            user_id=user_id,
            description=f"Saved {record_count} ledger record(s)",
            details={"record_count": record_count},
        )

    @staticmethod
    def reply_sent(
        correlation_id: str,
        user_id: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REPLY_SENT,
            severity=AuditSeverity.DEBUG,
            correlation_id=correlation_id,
            user_id=user_id,
            description="Summary reply rendered",
        )

    @staticmethod
    def stage_failed(
        correlation_id: str,
        user_id: int,
        stage: str,
        error_type: str,
        error_message: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STAGE_FAILED,
            severity=AuditSeverity.WARNING,
            correlation_id=correlation_id,
            user_id=user_id,
            description=f"Pipeline failed at stage: {stage}",
            details={"stage": stage},
            error_type=error_type,
            error_message=error_message,
        )
