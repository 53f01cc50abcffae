"""
Asset Builder

Turns the content of one chat message into the ordered asset list the
extraction service consumes.

Each source kind has exactly one way to become an asset:
- text  -> the raw message text
- photo -> JPEG bytes
- voice -> OGG bytes
- audio -> MPEG bytes

Binary kinds require the matching attachment and fetch its bytes through
the platform. Nothing is persisted here.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Optional

import structlog

from src.errors import RetrievalError, ValidationError
from src.models.spend import Asset, Attachment, IncomingMessage, SourceKind


logger = structlog.get_logger(__name__)


class FileFetcher(ABC):
    """
    Platform file-retrieval capability.

    The chat adapter provides the implementation; tests use stubs.
    """

    @abstractmethod
    async def fetch(self, attachment: Attachment) -> bytes:
        """
        Download the raw bytes of an attachment.

        Raises:
            Any exception on failure; the builder reports it as RetrievalError.
        """
        pass


@dataclass(frozen=True)
class _BinarySource:
    """How one binary source kind maps onto a message attachment."""
    attribute: str
    label: str
    make_asset: Callable[[bytes], Asset]


_BINARY_SOURCES: dict[SourceKind, _BinarySource] = {
    SourceKind.PHOTO: _BinarySource("photo", "photo", Asset.from_photo),
    SourceKind.VOICE: _BinarySource("voice", "voice message", Asset.from_voice),
    SourceKind.AUDIO: _BinarySource("audio", "audio", Asset.from_audio),
}


class AssetBuilder:
    """
    Builds normalized assets for a message.

    One network read per attachment, no partial results: either every
    asset is returned or an exception is raised.
    """

    def __init__(
        self,
        fetcher: FileFetcher,
        max_attachment_bytes: Optional[int] = None,
    ):
        self._fetcher = fetcher
        self._max_attachment_bytes = max_attachment_bytes

    async def build(
        self,
        source: SourceKind,
        message: IncomingMessage,
    ) -> list[Asset]:
        """
        Build the asset list for `message` reported as `source`.

        Raises:
            ValidationError: Attachment missing, too large, or source unsupported
            RetrievalError: Attachment bytes could not be fetched
        """
        if source == SourceKind.TEXT:
            return [self._build_text(message)]

        binary = _BINARY_SOURCES.get(source)
        if binary is None:
            raise ValidationError(f"Unsupported source: {source!r}", "Unsupported source.")

        attachment = getattr(message, binary.attribute)
        if attachment is None:
            raise ValidationError(f"No {binary.label} found.")

        data = await self._fetch(attachment, binary.label)
        return [binary.make_asset(data)]

    def _build_text(self, message: IncomingMessage) -> Asset:
        # Passed through as sent; blank text still goes to extraction.
        return Asset.from_text(message.text or "")

    async def _fetch(self, attachment: Attachment, label: str) -> bytes:
        if (
            self._max_attachment_bytes is not None
            and attachment.file_size is not None
            and attachment.file_size > self._max_attachment_bytes
        ):
            raise ValidationError(
                f"{label} is {attachment.file_size} bytes, limit is {self._max_attachment_bytes}",
                f"The {label} is too large.",
            )

        try:
            data = await self._fetcher.fetch(attachment)
        except Exception as e:
            logger.warning(
                "attachment_fetch_failed",
                file_id=attachment.file_id,
                error=str(e),
            )
            raise RetrievalError(
                f"Fetching {label} {attachment.file_id} failed: {e}",
                f"Failed to read {label}.",
            ) from e

        if not data:
            raise RetrievalError(
                f"Fetching {label} {attachment.file_id} returned no data",
                f"Failed to read {label}.",
            )
        return bytes(data)
