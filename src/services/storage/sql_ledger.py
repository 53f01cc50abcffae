"""
SQL Ledger Storage

Implements LedgerStorageInterface on top of SQLAlchemy. SQLite is the
default backend, any SQLAlchemy URL works.

Schema (table `spends`):
| id | tg_user_id | created_at | source | raw_text | spend_total |
| currency | item_name | item_price | cashier_name | json |

DESIGN DECISION: Each batch is written inside one transaction and
flushed row by row, so the first failing insert rolls back everything
written before it. Write serialization is left to the database's own
locking.
"""

from typing import Optional

import structlog
from sqlalchemy import (
    BigInteger,
    Column,
    DateTime,
    Float,
    String,
    Text,
    create_engine,
    func,
    or_,
    select,
)
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker

from src.errors import PersistenceError
from src.models.spend import LedgerRecord, SourceKind
from src.services.storage.interface import LedgerStorageInterface


logger = structlog.get_logger(__name__)

Base = declarative_base()


class SpendRow(Base):
    """One row of the append-only spends table."""

    __tablename__ = "spends"

    id = Column(String, primary_key=True)
    tg_user_id = Column(BigInteger, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
    source = Column(String, nullable=False)
    raw_text = Column(Text, nullable=True)
    spend_total = Column(Float, nullable=False)
    currency = Column(String, nullable=True)
    item_name = Column(String, nullable=True)
    item_price = Column(Float, nullable=True)
    cashier_name = Column(String, nullable=True)
    json = Column(Text, nullable=True)


def create_storage_engine(url: str, echo: bool = False) -> Engine:
    """Create the engine for a database URL."""
    # SQLite needs check_same_thread=False when shared across handlers
    connect_args = {}
    if url.startswith("sqlite"):
        connect_args = {"check_same_thread": False}

    return create_engine(url, connect_args=connect_args, echo=echo)


def init_schema(engine: Engine) -> None:
    """Create the spends table if it does not exist yet."""
    Base.metadata.create_all(bind=engine)


def _id_suffix(record_id: str, correlation_id: str) -> int:
    suffix = record_id[len(correlation_id) + 1:]
    return int(suffix) if suffix.isdigit() else -1


class SqlLedgerStorage(LedgerStorageInterface):
    """
    Ledger storage backed by a SQL database.

    The engine is created once by the caller and shared by all pipelines.
    """

    def __init__(self, engine: Engine):
        self._engine = engine
        self._session_factory = sessionmaker(
            bind=engine,
            autoflush=False,
            expire_on_commit=False,
        )

    def _record_to_row(self, record: LedgerRecord) -> SpendRow:
        return SpendRow(
            id=record.id,
            tg_user_id=record.user_id,
            created_at=record.created_at,
            source=record.source.value,
            raw_text=record.raw_text,
            spend_total=record.spend_total,
            currency=record.currency,
            item_name=record.item_name,
            item_price=record.item_price,
            cashier_name=record.cashier_name,
            json=record.payload_json,
        )

    def _row_to_record(self, row: SpendRow, correlation_id: str) -> LedgerRecord:
        return LedgerRecord(
            id=row.id,
            correlation_id=correlation_id,
            user_id=row.tg_user_id,
            created_at=row.created_at,
            source=SourceKind(row.source),
            raw_text=row.raw_text,
            spend_total=row.spend_total,
            currency=row.currency or "",
            item_name=row.item_name or "",
            item_price=row.item_price if row.item_price is not None else 0.0,
            cashier_name=row.cashier_name or "",
            payload_json=row.json or "{}",
        )

    async def save_records(self, records: list[LedgerRecord]) -> int:
        if not records:
            return 0

        rows = [self._record_to_row(record) for record in records]

        try:
            with self._session_factory() as session:
                with session.begin():
                    for row in rows:
                        session.add(row)
                        session.flush()
        except SQLAlchemyError as e:
            logger.warning(
                "ledger_batch_rolled_back",
                correlation_id=records[0].correlation_id,
                record_count=len(records),
                error=str(e),
            )
            raise PersistenceError(
                f"Saving {len(records)} record(s) failed: {e}",
                "Could not save the spend. Nothing was recorded.",
            ) from e

        logger.debug(
            "ledger_batch_committed",
            correlation_id=records[0].correlation_id,
            record_count=len(rows),
        )
        return len(rows)

    async def get_records_by_correlation_id(
        self,
        correlation_id: str,
    ) -> list[LedgerRecord]:
        stmt = select(SpendRow).where(
            or_(
                SpendRow.id == correlation_id,
                SpendRow.id.like(f"{correlation_id}-%"),
            )
        )
        with self._session_factory() as session:
            rows = session.scalars(stmt).all()

        rows = sorted(rows, key=lambda row: _id_suffix(row.id, correlation_id))
        return [self._row_to_record(row, correlation_id) for row in rows]

    async def count_records(self, user_id: Optional[int] = None) -> int:
        stmt = select(func.count()).select_from(SpendRow)
        if user_id is not None:
            stmt = stmt.where(SpendRow.tg_user_id == user_id)
        with self._session_factory() as session:
            return session.scalar(stmt) or 0
