"""Services package."""

from src.services.assets import AssetBuilder, FileFetcher
from src.services.extraction import (
    DEFAULT_FIELD_BINDINGS,
    ExtractorInterface,
    FieldBinding,
    GeminiExtractor,
)
from src.services.storage import (
    LedgerStorageInterface,
    SqlLedgerStorage,
    create_storage_engine,
    init_schema,
)

__all__ = [
    # Asset services
    "AssetBuilder",
    "FileFetcher",
    # Extraction services
    "DEFAULT_FIELD_BINDINGS",
    "ExtractorInterface",
    "FieldBinding",
    "GeminiExtractor",
    # Storage services
    "LedgerStorageInterface",
    "SqlLedgerStorage",
    "create_storage_engine",
    "init_schema",
]
