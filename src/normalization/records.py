"""
Record Normalizer

Expands one ExtractionResult into the ledger records it stands for.

Rules:
1. total = result.spend if it is nonzero, else the sum of position prices.
   An explicit spend wins even when it disagrees with the positions.
2. No positions -> one record named "Unknown item" priced at the total,
   with the bare correlation id as its id.
3. N positions -> N records in position order, ids "{correlation_id}-{i}".

Every record of one call shares total, currency, cashier and the
serialized result. This module does no I/O.
"""

from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from src.models.spend import (
    UNKNOWN_ITEM_NAME,
    ExtractionResult,
    LedgerRecord,
    SourceKind,
)


def new_correlation_id() -> str:
    """Create the id shared by all records of one extraction event."""
    return str(uuid4())


def compute_total(result: ExtractionResult) -> float:
    """Stated spend if set, else the sum of the position prices."""
    if result.spend != 0:
        return result.spend
    return sum(position.price for position in result.positions)


def build_records(
    user_id: int,
    source: SourceKind,
    raw_text: Optional[str],
    result: ExtractionResult,
    correlation_id: Optional[str] = None,
    created_at: Optional[datetime] = None,
) -> tuple[list[LedgerRecord], float]:
    """
    Build the ledger records for one extraction event.

    Args:
        user_id: Sender id from the platform
        source: Kind of message the spend came from
        raw_text: Message text for text sources, None otherwise
        result: The extraction result
        correlation_id: Override the generated correlation id
        created_at: Override the timestamp shared by the records

    Returns:
        (records, total)
    """
    correlation_id = correlation_id or new_correlation_id()
    created_at = created_at or datetime.now(timezone.utc)
    total = compute_total(result)

    shared = dict(
        correlation_id=correlation_id,
        user_id=user_id,
        created_at=created_at,
        source=source,
        raw_text=raw_text or None,
        spend_total=total,
        currency=result.currency,
        cashier_name=result.cashier_name,
        payload_json=result.model_dump_json(),
    )

    if not result.positions:
        record = LedgerRecord(
            id=correlation_id,
            item_name=UNKNOWN_ITEM_NAME,
            item_price=total,
            **shared,
        )
        return [record], total

    records = [
        LedgerRecord(
            id=f"{correlation_id}-{index}",
            item_name=position.name,
            item_price=position.price,
            **shared,
        )
        for index, position in enumerate(result.positions)
    ]
    return records, total
