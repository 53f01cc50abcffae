"""
Tests for the asset builder.
"""

import pytest

from conftest import StubFetcher
from src.errors import RetrievalError, ValidationError
from src.models.spend import AssetKind, Attachment, IncomingMessage, SourceKind
from src.services.assets import AssetBuilder


class TestTextAssets:
    """Text messages become one text asset."""

    @pytest.mark.asyncio
    async def test_text_message(self, fetcher):
        builder = AssetBuilder(fetcher)
        message = IncomingMessage(user_id=1, text="Bought milk for 100 THB")

        assets = await builder.build(SourceKind.TEXT, message)

        assert len(assets) == 1
        assert assets[0].kind == AssetKind.TEXT
        assert assets[0].payload == "Bought milk for 100 THB"
        assert fetcher.calls == []

    @pytest.mark.asyncio
    async def test_text_is_passed_through_unchanged(self, fetcher):
        """Whitespace and blank text are left for extraction to judge."""
        builder = AssetBuilder(fetcher)

        padded = await builder.build(SourceKind.TEXT, IncomingMessage(user_id=1, text="  Bought milk  "))
        blank = await builder.build(SourceKind.TEXT, IncomingMessage(user_id=1, text="   "))

        assert padded[0].payload == "  Bought milk  "
        assert blank[0].payload == "   "


class TestBinaryAssets:
    """Photo, voice and audio messages are downloaded."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "source, attribute, mime_type",
        [
            (SourceKind.PHOTO, "photo", "image/jpeg"),
            (SourceKind.VOICE, "voice", "audio/ogg"),
            (SourceKind.AUDIO, "audio", "audio/mpeg"),
        ],
    )
    async def test_attachment_is_fetched(self, fetcher, source, attribute, mime_type):
        builder = AssetBuilder(fetcher)
        message = IncomingMessage(user_id=1, **{attribute: Attachment(file_id="f-1")})

        assets = await builder.build(source, message)

        assert len(assets) == 1
        assert assets[0].mime_type == mime_type
        assert assets[0].payload == fetcher.data
        assert fetcher.calls == ["f-1"]

    @pytest.mark.asyncio
    async def test_missing_attachment_is_validation_error(self, fetcher):
        builder = AssetBuilder(fetcher)
        with pytest.raises(ValidationError, match="No photo found"):
            await builder.build(SourceKind.PHOTO, IncomingMessage(user_id=1, text="hi"))
        assert fetcher.calls == []

    @pytest.mark.asyncio
    async def test_fetch_failure_is_retrieval_error(self):
        fetcher = StubFetcher(error=OSError("connection reset"))
        builder = AssetBuilder(fetcher)
        message = IncomingMessage(user_id=1, voice=Attachment(file_id="v-1"))

        with pytest.raises(RetrievalError) as exc_info:
            await builder.build(SourceKind.VOICE, message)

        assert exc_info.value.user_message == "Failed to read voice message."

    @pytest.mark.asyncio
    async def test_empty_download_is_retrieval_error(self):
        builder = AssetBuilder(StubFetcher(data=b""))
        message = IncomingMessage(user_id=1, audio=Attachment(file_id="a-1"))
        with pytest.raises(RetrievalError):
            await builder.build(SourceKind.AUDIO, message)

    @pytest.mark.asyncio
    async def test_oversized_attachment_is_not_downloaded(self, fetcher):
        builder = AssetBuilder(fetcher, max_attachment_bytes=1024)
        message = IncomingMessage(
            user_id=1,
            photo=Attachment(file_id="big", file_size=4096),
        )
        with pytest.raises(ValidationError) as exc_info:
            await builder.build(SourceKind.PHOTO, message)
        assert exc_info.value.user_message == "The photo is too large."
        assert fetcher.calls == []
