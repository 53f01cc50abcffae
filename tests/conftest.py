"""
Shared pytest fixtures - in-memory SQLite ledger and stub collaborators.
"""

from typing import Optional

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from src.models.spend import Asset, Attachment, ExtractionResult
from src.services.assets import FileFetcher
from src.services.extraction import ExtractorInterface
from src.services.storage import SqlLedgerStorage, init_schema


class StubFetcher(FileFetcher):
    """Returns fixed bytes, or raises the configured error."""

    def __init__(self, data: bytes = b"\xff\xd8fake-jpeg", error: Optional[Exception] = None):
        self.data = data
        self.error = error
        self.calls: list[str] = []

    async def fetch(self, attachment: Attachment) -> bytes:
        self.calls.append(attachment.file_id)
        if self.error is not None:
            raise self.error
        return self.data


class StubExtractor(ExtractorInterface):
    """Returns a fixed result, or raises the configured error."""

    def __init__(
        self,
        result: Optional[ExtractionResult] = None,
        error: Optional[Exception] = None,
    ):
        self.result = result or ExtractionResult()
        self.error = error
        self.calls: list[list[Asset]] = []

    async def extract(self, assets: list[Asset]) -> ExtractionResult:
        self.calls.append(assets)
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture()
def engine():
    # StaticPool ensures all connections share the same in-memory database
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_schema(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def storage(engine):
    return SqlLedgerStorage(engine)


@pytest.fixture()
def fetcher():
    return StubFetcher()
