"""
Main Orchestrator for the Spend Tracker Bot

Ties the pipeline components together for one chat message:

    Received -> AssetsBuilt -> Extracted -> Normalized -> Persisted -> Replied
    (any stage failure) -> Failed

DESIGN DECISION: Every collaborator (file fetcher, extractor, ledger
storage) is built once at startup and passed in explicitly. The flow
holds no per-message state, so concurrent messages never share anything
except the storage engine.

Records are only written after extraction and normalization succeeded,
and the write itself is one transaction, so no failure path (including
cancellation while waiting on the extraction service) leaves a partial
batch behind.
"""

from typing import Optional

from pydantic import BaseModel, Field

from src.audit import AuditLogger
from src.config import Settings, get_settings
from src.errors import PipelineError
from src.models.spend import (
    IncomingMessage,
    LedgerRecord,
    PipelineState,
    SourceKind,
)
from src.normalization import build_records, new_correlation_id
from src.rendering import render_failure, render_summary
from src.services.assets import AssetBuilder, FileFetcher
from src.services.extraction import ExtractorInterface, GeminiExtractor
from src.services.storage import (
    LedgerStorageInterface,
    SqlLedgerStorage,
    create_storage_engine,
    init_schema,
)


class PipelineOutcome(BaseModel):
    """What one pipeline run produced and what to reply with."""

    correlation_id: str
    state: PipelineState
    reply: str
    reply_is_html: bool = False
    records: list[LedgerRecord] = Field(default_factory=list)
    total: Optional[float] = None
    error_stage: Optional[str] = None
    error_type: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.state == PipelineState.REPLIED


class SpendExtractionFlow:
    """
    Orchestrates the spend extraction flow.

    Flow:
    1. Build assets   -> text or downloaded attachment bytes
    2. Extract        -> one ExtractionResult from the extraction service
    3. Normalize      -> ledger records + total
    4. Persist        -> one atomic batch
    5. Reply          -> HTML summary

    The first failing step ends the run with a plain-text error reply.
    """

    def __init__(
        self,
        asset_builder: AssetBuilder,
        extractor: ExtractorInterface,
        storage: LedgerStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._asset_builder = asset_builder
        self._extractor = extractor
        self._storage = storage
        self._audit_logger = audit_logger or AuditLogger()

    async def process_message(
        self,
        message: IncomingMessage,
        source: SourceKind,
    ) -> PipelineOutcome:
        """
        Run the whole pipeline for one message.

        Only PipelineError is turned into a failure reply; anything else
        is a bug or a cancellation and propagates to the caller.
        """
        correlation_id = new_correlation_id()
        user_id = message.user_id
        raw_text = message.text if source == SourceKind.TEXT else None
        audit = self._audit_logger

        audit.log_message_received(correlation_id, user_id, source.value)

        try:
            assets = await self._asset_builder.build(source, message)
            audit.log_assets_built(
                correlation_id,
                user_id,
                asset_kinds=[asset.kind.value for asset in assets],
                total_bytes=sum(len(asset.payload) for asset in assets if asset.is_binary),
            )

            result = await self._extractor.extract(assets)
            audit.log_extraction_completed(
                correlation_id,
                user_id,
                currency=result.currency,
                spend=result.spend,
                position_count=len(result.positions),
            )

            records, total = build_records(
                user_id=user_id,
                source=source,
                raw_text=raw_text,
                result=result,
                correlation_id=correlation_id,
            )
            audit.log_records_normalized(correlation_id, user_id, len(records), total)

            saved = await self._storage.save_records(records)
            audit.log_records_saved(correlation_id, user_id, saved)
        except PipelineError as e:
            audit.log_stage_failed(correlation_id, user_id, e.stage.value, e)
            return PipelineOutcome(
                correlation_id=correlation_id,
                state=PipelineState.FAILED,
                reply=render_failure(e.describe()),
                error_stage=e.stage.value,
                error_type=type(e).__name__,
            )

        reply = render_summary(result, total)
        audit.log_reply_sent(correlation_id, user_id)

        return PipelineOutcome(
            correlation_id=correlation_id,
            state=PipelineState.REPLIED,
            reply=reply,
            reply_is_html=True,
            records=records,
            total=total,
        )


def create_app_components(
    fetcher: FileFetcher,
    settings: Optional[Settings] = None,
    extractor: Optional[ExtractorInterface] = None,
) -> SpendExtractionFlow:
    """
    Factory function to create the pipeline with its collaborators.

    Creates the storage engine, bootstraps the schema and configures
    the extraction client. Raises if any of them cannot be set up;
    that is a startup failure, not a per-message one.

    Args:
        fetcher: Platform file-retrieval capability
        settings: Settings to use (defaults to the cached settings)
        extractor: Override the Gemini extractor (for testing)
    """
    settings = settings or get_settings()
    app_settings = settings.app
    db_settings = settings.database

    engine = create_storage_engine(db_settings.url, echo=db_settings.echo)
    init_schema(engine)
    storage = SqlLedgerStorage(engine)

    if extractor is None:
        extractor = GeminiExtractor(
            api_key=settings.gemini.api_key,
            default_currency=app_settings.default_currency,
        )

    asset_builder = AssetBuilder(
        fetcher,
        max_attachment_bytes=app_settings.max_attachment_size_bytes,
    )

    return SpendExtractionFlow(
        asset_builder=asset_builder,
        extractor=extractor,
        storage=storage,
        audit_logger=AuditLogger(),
    )
