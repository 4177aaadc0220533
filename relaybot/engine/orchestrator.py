from __future__ import annotations

import logging
from typing import Optional, Protocol

from relaybot.engine.waiter import RunWaiter
from relaybot.errors import RelayError, RunFailed, TransportError, TransportSendFailed
from relaybot.models import InboundEvent, ReadyState, RelayOutcome, ThreadMessage
from relaybot.services.conversations import ConversationClient
from relaybot.services.threads import ThreadRegistry

logger = logging.getLogger(__name__)


class Transport(Protocol):
    async def send_text(self, chat_id: int, text: str) -> None: ...

    async def send_typing(self, chat_id: int) -> None: ...

    async def file_url(self, file_id: str) -> Optional[str]: ...


def extract_text(message: Optional[ThreadMessage]) -> str:
    """Join the text segments of a message in order, one per line."""
    if message is None:
        return ""
    return "\n".join(seg.text or "" for seg in message.content if seg.type == "text")


class MessageRelay:
    """
    Relays one inbound chat message to the assistant and sends back its reply.

    Every turn ends in a RelayOutcome. Backend and delivery errors are logged
    and reported as "failed"; the user sees nothing in that case.
    """

    def __init__(
        self,
        client: ConversationClient,
        registry: ThreadRegistry,
        assistant_id: str,
        waiter: Optional[RunWaiter] = None,
    ):
        self.client = client
        self.registry = registry
        self.assistant_id = assistant_id
        self.waiter = waiter or RunWaiter()

    async def handle(self, event: InboundEvent, transport: Transport) -> RelayOutcome:
        if not event.is_private:
            logger.debug(f"Ignoring message from {event.chat_type} chat {event.chat_id}")
            return RelayOutcome.ignored("group chat")

        try:
            if event.photo_file_id:
                return await self._relay_image(event, transport)
            if not event.text:
                return RelayOutcome.ignored("no content")
            return await self._relay_text(event, transport)
        except RelayError as e:
            logger.error(f"Relay failed for chat {event.chat_id}: {type(e).__name__}: {e}")
            return RelayOutcome.failed(e)

    async def _relay_text(self, event: InboundEvent, transport: Transport) -> RelayOutcome:
        await self._typing(event.chat_id, transport)
        thread_id = await self.registry.get_or_create(event.chat_id, event.display_name)
        await self.client.post_message(thread_id, "user", event.text)

        reply = await self.run_assistant(thread_id)
        text = extract_text(reply)
        if not text:
            raise RunFailed(f"empty reply on thread {thread_id}")

        await self._send(event.chat_id, text, transport)
        return RelayOutcome.replied(text)

    async def _relay_image(self, event: InboundEvent, transport: Transport) -> RelayOutcome:
        try:
            image_url = await transport.file_url(event.photo_file_id)
        except Exception as e:
            raise TransportError(f"could not look up photo for chat {event.chat_id}: {e}") from e
        if not image_url:
            logger.info(f"No image url for photo in chat {event.chat_id}")
            return RelayOutcome.ignored("no image url")

        await self._typing(event.chat_id, transport)
        description = await self.client.describe_image(image_url)
        if not description:
            raise RunFailed("empty image description")

        await self._send(event.chat_id, description, transport)
        return RelayOutcome.replied(description)

    async def run_assistant(self, thread_id: str) -> Optional[ThreadMessage]:
        """Start a run on the thread and return the message it produced."""
        run = await self.client.start_run(thread_id, self.assistant_id)
        if run.ready_state is ReadyState.READY:
            return await self.client.latest_message(thread_id, run.id)

        async def check_ready() -> ReadyState:
            current = await self.client.get_run_status(thread_id, run.id)
            return current.ready_state

        async def on_ready() -> Optional[ThreadMessage]:
            return await self.client.latest_message(thread_id, run.id)

        return await self.waiter.wait(check_ready, on_ready)

    async def _typing(self, chat_id: int, transport: Transport) -> None:
        try:
            await transport.send_typing(chat_id)
        except Exception as e:
            logger.debug(f"Typing indicator failed for chat {chat_id}: {e}")

    async def _send(self, chat_id: int, text: str, transport: Transport) -> None:
        try:
            await transport.send_text(chat_id, text)
        except Exception as e:
            raise TransportSendFailed(f"could not deliver reply to chat {chat_id}: {e}") from e
