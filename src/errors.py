"""
Pipeline errors.

Every stage of the extraction pipeline reports failure with one of the
exceptions below. Each carries the stage it came from and a short
message that is safe to show to the user.
"""

from enum import Enum
from typing import Optional


class PipelineStage(str, Enum):
    """Stage of the pipeline an error originated in."""
    ASSETS = "assets"
    EXTRACTION = "extraction"
    NORMALIZATION = "normalization"
    PERSISTENCE = "persistence"


class PipelineError(Exception):
    """Base exception for pipeline failures."""

    stage: PipelineStage = PipelineStage.ASSETS

    def __init__(self, message: str, user_message: Optional[str] = None):
        super().__init__(message)
        self.user_message = user_message or message

    def describe(self) -> str:
        """Plain-text explanation naming the failing stage."""
        return f"{self.stage.value.capitalize()} failed: {self.user_message}"


class ValidationError(PipelineError):
    """Expected attachment missing, or source kind not supported."""
    stage = PipelineStage.ASSETS


class RetrievalError(PipelineError):
    """Attachment bytes could not be fetched from the platform."""
    stage = PipelineStage.ASSETS


class ExtractionError(PipelineError):
    """Extraction call failed or returned unusable data."""
    stage = PipelineStage.EXTRACTION


class PersistenceError(PipelineError):
    """Transactional batch insert failed; nothing from the batch was kept."""
    stage = PipelineStage.PERSISTENCE
