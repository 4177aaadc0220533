from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from typing import Dict, Optional

from config import SEED_USER_TEMPLATE
from relaybot.services.conversations import ConversationClient
from relaybot.services.greetings import pick_greeting

logger = logging.getLogger(__name__)


class ThreadRegistry:
    """
    Maps chat ids to backend thread ids for the lifetime of the process.

    Entries are never evicted and nothing is persisted, so a restart starts
    every chat on a fresh thread. Creation for a given chat is serialized by
    a per-chat lock: two first messages arriving together still share one
    thread.
    """

    def __init__(self, client: ConversationClient):
        self._client = client
        self._threads: Dict[int, str] = {}
        self._locks: Dict[int, asyncio.Lock] = defaultdict(asyncio.Lock)

    def __len__(self) -> int:
        return len(self._threads)

    def get(self, chat_id: int) -> Optional[str]:
        return self._threads.get(chat_id)

    async def get_or_create(self, chat_id: int, display_name: str) -> str:
        thread_id = self._threads.get(chat_id)
        if thread_id:
            return thread_id

        async with self._locks[chat_id]:
            # Another task may have created it while we waited for the lock
            thread_id = self._threads.get(chat_id)
            if thread_id:
                return thread_id
            return await self._create(chat_id, display_name, pick_greeting())

    async def reset(self, chat_id: int, display_name: str, greeting: str) -> str:
        """Start the chat over on a new thread seeded with the given greeting."""
        async with self._locks[chat_id]:
            return await self._create(chat_id, display_name, greeting)

    async def _create(self, chat_id: int, display_name: str, greeting: str) -> str:
        thread_id = await self._client.create_thread([
            {"role": "user", "content": SEED_USER_TEMPLATE.format(name=display_name)},
            {"role": "assistant", "content": greeting},
        ])
        previous = self._threads.get(chat_id)
        self._threads[chat_id] = thread_id
        if previous:
            logger.info(f"Chat {chat_id} moved from thread {previous} to {thread_id}")
        else:
            logger.info(f"Chat {chat_id} mapped to thread {thread_id}")
        return thread_id
