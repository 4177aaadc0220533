from __future__ import annotations

import logging
from typing import Optional

from telegram import Update
from telegram.ext import ContextTypes

from relaybot.models import InboundEvent
from relaybot.services.transport import TelegramTransport

logger = logging.getLogger(__name__)


def event_from_update(update: Update) -> Optional[InboundEvent]:
    message = update.effective_message
    if not message or not message.chat:
        return None

    user = message.from_user
    # Telegram lists photo sizes smallest first
    photo_file_id = message.photo[-1].file_id if message.photo else None
    return InboundEvent(
        chat_id=message.chat.id,
        chat_type=message.chat.type,
        display_name=(user.first_name if user else None) or "friend",
        text=message.text,
        photo_file_id=photo_file_id,
    )


async def handle_message(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Relay a private chat message to the assistant and reply with its answer."""
    event = event_from_update(update)
    if event is None:
        logger.debug("Update without a message, skipping")
        return

    relay = context.bot_data["relay"]
    outcome = await relay.handle(event, TelegramTransport(context.bot))

    if outcome.status == "replied":
        logger.info(f"Replied to chat {event.chat_id} ({len(outcome.text)} chars)")
    elif outcome.status == "ignored":
        logger.debug(f"Ignored message in chat {event.chat_id}: {outcome.reason}")
    else:
        logger.warning(f"No reply sent to chat {event.chat_id}: {outcome.reason}")
