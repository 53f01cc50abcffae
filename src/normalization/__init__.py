"""Record normalization package."""

from src.normalization.records import (
    build_records,
    compute_total,
    new_correlation_id,
)

__all__ = ["build_records", "compute_total", "new_correlation_id"]
