"""
Storage Services Package

Provides the abstract ledger interface and its SQL implementation.
"""

from src.services.storage.interface import LedgerStorageInterface
from src.services.storage.sql_ledger import (
    Base,
    SpendRow,
    SqlLedgerStorage,
    create_storage_engine,
    init_schema,
)

__all__ = [
    # Interfaces
    "LedgerStorageInterface",
    # SQL implementation
    "Base",
    "SpendRow",
    "SqlLedgerStorage",
    "create_storage_engine",
    "init_schema",
]
