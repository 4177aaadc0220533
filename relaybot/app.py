"""
Telegram assistant relay bot - application wiring.
Builds the python-telegram-bot Application and runs it with long polling.
"""
import logging
import sys
import traceback

from telegram import Update
from telegram.ext import (
    Application,
    CommandHandler,
    MessageHandler,
    ContextTypes,
    filters,
)

from config import LOG_LEVEL, Settings, load_settings
from relaybot.engine.orchestrator import MessageRelay
from relaybot.engine.waiter import RunWaiter
from relaybot.errors import ConfigError
from relaybot.handlers.commands import help_command, start_command
from relaybot.handlers.messages import handle_message
from relaybot.health import start_health_server
from relaybot.logging import configure_logging
from relaybot.services.conversations import ConversationClient
from relaybot.services.threads import ThreadRegistry


logger = logging.getLogger("relaybot")


async def error_handler(update: object, context: ContextTypes.DEFAULT_TYPE):
    """Log errors that escaped a handler without crashing the bot."""
    error = context.error
    logger.error(f"Unhandled error while processing update: {update}")
    if error:
        logger.error("".join(traceback.format_exception(type(error), error, error.__traceback__)))


def build_application(settings: Settings) -> Application:
    client = ConversationClient(
        settings.openai_api_key,
        base_url=settings.openai_base_url,
        vision_model=settings.vision_model,
    )
    registry = ThreadRegistry(client)
    waiter = RunWaiter(
        timeout=settings.run_timeout,
        interval=settings.poll_interval,
        max_attempts=settings.max_polls,
    )
    relay = MessageRelay(client, registry, settings.assistant_id, waiter)

    # concurrent_updates lets one slow run wait without blocking other chats
    application = Application.builder().token(settings.telegram_token).concurrent_updates(True).build()
    application.bot_data["registry"] = registry
    application.bot_data["relay"] = relay

    # Commands
    application.add_handler(CommandHandler("start", start_command))
    application.add_handler(CommandHandler("help", help_command))

    # Messages
    application.add_handler(MessageHandler((filters.TEXT | filters.PHOTO) & ~filters.COMMAND, handle_message))

    # Errors
    application.add_error_handler(error_handler)
    return application


def main():
    configure_logging(getattr(logging, LOG_LEVEL, logging.INFO))

    try:
        settings = load_settings()
    except ConfigError as e:
        logger.error(f"Please provide the required environment variables. {e}")
        sys.exit(1)

    application = build_application(settings)

    logger.info(f"Starting health server on port {settings.port}")
    start_health_server(settings.port)

    logger.info("Starting relay bot (polling mode)...")
    application.run_polling(allowed_updates=Update.ALL_TYPES)


if __name__ == "__main__":
    main()
