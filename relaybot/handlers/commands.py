from __future__ import annotations

import logging

from telegram import Update
from telegram.ext import ContextTypes

from config import HELP_MESSAGE
from relaybot.errors import RelayError
from relaybot.services.greetings import pick_greeting

logger = logging.getLogger(__name__)


async def start_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """
    Greets the user and starts their chat on a fresh assistant thread.
    The thread is seeded with the same greeting the user just received.
    Triggered by the /start command.
    """
    logger.info("Received /start command")
    message = update.effective_message
    greeting = pick_greeting()
    try:
        await message.reply_text(greeting)
    except Exception as e:
        logger.error(f"Error replying to /start: {e}", exc_info=True)

    user = update.effective_user
    name = (user.first_name if user else None) or "friend"
    registry = context.bot_data["registry"]
    try:
        await registry.reset(message.chat_id, name, greeting)
    except RelayError as e:
        logger.error(f"Could not create thread for chat {message.chat_id}: {e}")


async def help_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle /help"""
    logger.info("Received /help command")
    try:
        await update.effective_message.reply_text(HELP_MESSAGE)
    except Exception as e:
        logger.error(f"Error replying to /help: {e}", exc_info=True)
