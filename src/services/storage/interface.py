"""
Abstract Ledger Storage Interface

DESIGN DECISION: We define an abstract interface for ledger storage.
This allows us to:
1. Swap SQLite for another SQL database (or something else entirely)
2. Use failing or in-memory stores in tests
3. Keep the pipeline decoupled from the storage implementation

The ledger is append-only: records are written once, in batches that
belong to one extraction event. There are no update or delete operations.
"""

from abc import ABC, abstractmethod
from typing import Optional

from src.models.spend import LedgerRecord


class LedgerStorageInterface(ABC):
    """
    Abstract interface for ledger storage operations.

    Any storage implementation must implement these methods.
    """

    @abstractmethod
    async def save_records(self, records: list[LedgerRecord]) -> int:
        """
        Atomically save all records of one extraction event.

        Either every record is stored or none is.

        Args:
            records: Records sharing one correlation id

        Returns:
            Number of records saved

        Raises:
            PersistenceError: If any insert fails (the batch is rolled back)
        """
        pass

    @abstractmethod
    async def get_records_by_correlation_id(
        self,
        correlation_id: str,
    ) -> list[LedgerRecord]:
        """
        Get all records of one extraction event.

        Returns:
            Records in their original position order
        """
        pass

    @abstractmethod
    async def count_records(self, user_id: Optional[int] = None) -> int:
        """
        Count stored records, optionally for one user.
        """
        pass
