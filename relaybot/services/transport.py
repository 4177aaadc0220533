from __future__ import annotations

from typing import Optional

from telegram import Bot
from telegram.constants import ChatAction


class TelegramTransport:
    """Sends replies through the Telegram Bot API."""

    def __init__(self, bot: Bot):
        self.bot = bot

    async def send_text(self, chat_id: int, text: str) -> None:
        await self.bot.send_message(chat_id=chat_id, text=text)

    async def send_typing(self, chat_id: int) -> None:
        await self.bot.send_chat_action(chat_id=chat_id, action=ChatAction.TYPING)

    async def file_url(self, file_id: str) -> Optional[str]:
        # python-telegram-bot returns the full download url in file_path
        file = await self.bot.get_file(file_id)
        return file.file_path if file else None
