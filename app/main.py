"""
Telegram Frontend for the Spend Tracker Bot

This is the chat interface users talk to. It only translates between
Telegram and the pipeline:
- /start explains how to use the bot
- text, photo, voice and audio messages each run the extraction pipeline
- the pipeline outcome is sent back as the reply

Startup fails loudly when credentials are missing or the database
cannot be prepared.
"""

import sys
from typing import Optional

import structlog
from pydantic import ValidationError as SettingsError
from telegram import Bot, Message, Update
from telegram.constants import ParseMode
from telegram.ext import (
    Application,
    CommandHandler,
    ContextTypes,
    MessageHandler,
    filters,
)

from src.audit import configure_logging
from src.config import get_settings
from src.models.spend import Attachment, IncomingMessage, SourceKind
from src.orchestrator import SpendExtractionFlow, create_app_components
from src.services.assets import FileFetcher


logger = structlog.get_logger(__name__)

START_TEXT = 'Send a receipt photo or text like: "Bought milk for 100 THB".'


class TelegramFileFetcher(FileFetcher):
    """Downloads attachment bytes through the Bot API."""

    def __init__(self, bot: Bot):
        self._bot = bot

    async def fetch(self, attachment: Attachment) -> bytes:
        telegram_file = await self._bot.get_file(attachment.file_id)
        data = await telegram_file.download_as_bytearray()
        return bytes(data)


def _attachment(media) -> Optional[Attachment]:
    if media is None:
        return None
    return Attachment(file_id=media.file_id, file_size=media.file_size)


def to_incoming_message(message: Message, user_id: int) -> IncomingMessage:
    """
    Convert a Telegram message to the platform-independent model.

    For photos the largest available size is used.
    """
    photo = message.photo[-1] if message.photo else None
    return IncomingMessage(
        user_id=user_id,
        text=message.text,
        photo=_attachment(photo),
        voice=_attachment(message.voice),
        audio=_attachment(message.audio),
    )


async def start_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    await update.effective_message.reply_text(START_TEXT)


def make_spend_handler(flow: SpendExtractionFlow, source: SourceKind):
    """Create the handler that runs the pipeline for one source kind."""

    async def handle(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        message = update.effective_message
        user = update.effective_user
        if message is None or user is None:
            return

        outcome = await flow.process_message(
            to_incoming_message(message, user.id),
            source,
        )

        await message.reply_text(
            outcome.reply,
            parse_mode=ParseMode.HTML if outcome.reply_is_html else None,
        )

    return handle


def build_application(token: str, flow_factory) -> Application:
    """
    Build the Telegram application and register the handlers.

    Args:
        token: Bot token
        flow_factory: Callable taking a FileFetcher and returning the flow
    """
    application = Application.builder().token(token).build()
    flow = flow_factory(TelegramFileFetcher(application.bot))

    application.add_handler(CommandHandler("start", start_command))
    application.add_handler(MessageHandler(
        filters.TEXT & ~filters.COMMAND,
        make_spend_handler(flow, SourceKind.TEXT),
    ))
    application.add_handler(MessageHandler(
        filters.PHOTO,
        make_spend_handler(flow, SourceKind.PHOTO),
    ))
    application.add_handler(MessageHandler(
        filters.VOICE,
        make_spend_handler(flow, SourceKind.VOICE),
    ))
    application.add_handler(MessageHandler(
        filters.AUDIO,
        make_spend_handler(flow, SourceKind.AUDIO),
    ))
    return application


def main() -> None:
    """Main application entry point."""
    settings = get_settings()

    try:
        app_settings = settings.app
        telegram_settings = settings.telegram
        _ = settings.gemini
        _ = settings.database
    except SettingsError as e:
        configure_logging()
        logger.error("config_load_failed", error=str(e))
        sys.exit(1)

    configure_logging(
        level=app_settings.log_level,
        json_output=not app_settings.debug_mode,
    )

    try:
        application = build_application(
            telegram_settings.bot_token,
            lambda fetcher: create_app_components(fetcher, settings),
        )
    except Exception as e:
        logger.error("startup_failed", error=str(e))
        sys.exit(1)

    logger.info("bot_started", environment=app_settings.app_environment)
    application.run_polling(timeout=telegram_settings.poll_timeout)


if __name__ == "__main__":
    main()
