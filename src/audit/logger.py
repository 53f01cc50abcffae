"""
Audit Logger

DESIGN DECISION: Every pipeline transition is logged as a structured
event carrying the correlation id of its extraction event, so one
message can be followed from receipt to reply (or failure).

The audit logger never raises; a logging problem must not fail a spend.
"""

import logging
import sys

import structlog

from src.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity


def configure_logging(level: str = "INFO", json_output: bool = True) -> None:
    """
    Configure stdlib logging and structlog once at startup.

    JSON lines in production, colored console output in debug mode.
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level.upper(), logging.INFO),
    )

    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


class AuditLogger:
    """
    Central audit logging service for the extraction pipeline.
    """

    def __init__(self, logger_name: str = "spend_tracker.audit"):
        self._logger = structlog.get_logger(logger_name)

    def log(self, event: AuditEvent) -> None:
        """Log an audit event at the level matching its severity."""
        log_dict = event.to_log_dict()

        try:
            if event.severity == AuditSeverity.ERROR:
                self._logger.error("audit_event", **log_dict)
            elif event.severity == AuditSeverity.WARNING:
                self._logger.warning("audit_event", **log_dict)
            elif event.severity == AuditSeverity.DEBUG:
                self._logger.debug("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
        except Exception as e:
            # A broken log sink must not fail the pipeline
            print(f"audit logging failed: {e}", file=sys.stderr)

    def log_message_received(self, correlation_id: str, user_id: int, source: str) -> None:
        self.log(AuditEventBuilder.message_received(correlation_id, user_id, source))

    def log_assets_built(
        self,
        correlation_id: str,
        user_id: int,
        asset_kinds: list[str],
        total_bytes: int,
    ) -> None:
        self.log(AuditEventBuilder.assets_built(
            correlation_id, user_id, asset_kinds, total_bytes,
        ))

    def log_extraction_completed(
        self,
        correlation_id: str,
        user_id: int,
        currency: str,
        spend: float,
        position_count: int,
    ) -> None:
        self.log(AuditEventBuilder.extraction_completed(
            correlation_id, user_id, currency, spend, position_count,
        ))

    def log_records_normalized(
        self,
        correlation_id: str,
        user_id: int,
        record_count: int,
        total: float,
    ) -> None:
        self.log(AuditEventBuilder.records_normalized(
            correlation_id, user_id, record_count, total,
        ))

    def log_records_saved(self, correlation_id: str, user_id: int, record_count: int) -> None:
        self.log(AuditEventBuilder.records_saved(correlation_id, user_id, record_count))

    def log_reply_sent(self, correlation_id: str, user_id: int) -> None:
        self.log(AuditEventBuilder.reply_sent(correlation_id, user_id))

    def log_stage_failed(
        self,
        correlation_id: str,
        user_id: int,
        stage: str,
        error: Exception,
    ) -> None:
        self.log(AuditEventBuilder.stage_failed(
            correlation_id=correlation_id,
            user_id=user_id,
            stage=stage,
            error_type=type(error).__name__,
            error_message=str(error),
        ))
