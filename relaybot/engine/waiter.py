from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

from config import RUN_MAX_POLLS, RUN_POLL_INTERVAL_SECONDS, RUN_TIMEOUT_SECONDS
from relaybot.errors import RunFailed, RunTimeout
from relaybot.models import ReadyState

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RunWaiter:
    """
    Turns a "poll again later" status check into a bounded async wait.

    Two independent limits race each other: a wall-clock deadline and a cap
    on the number of polls. Whichever is hit first ends the wait with
    RunTimeout. With the defaults (100 polls, 0.5s apart, 10s deadline) the
    poll cap would allow 50s, so the deadline normally wins; the cap only
    matters when the interval or deadline is reconfigured.

    When the deadline fires the polling coroutine is cancelled, so a status
    request still in flight is abandoned rather than awaited.
    """

    def __init__(
        self,
        timeout: float = RUN_TIMEOUT_SECONDS,
        interval: float = RUN_POLL_INTERVAL_SECONDS,
        max_attempts: int = RUN_MAX_POLLS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.timeout = timeout
        self.interval = interval
        self.max_attempts = max_attempts
        self._sleep = sleep

    async def wait(
        self,
        check_ready: Callable[[], Awaitable[ReadyState]],
        on_ready: Callable[[], Awaitable[T]],
        timeout: Optional[float] = None,
    ) -> T:
        deadline = self.timeout if timeout is None else timeout
        try:
            return await asyncio.wait_for(self._poll(check_ready, on_ready), deadline)
        except asyncio.TimeoutError:
            logger.warning(f"Run not ready after {deadline}s")
            raise RunTimeout(f"not ready within {deadline}s") from None

    async def _poll(
        self,
        check_ready: Callable[[], Awaitable[ReadyState]],
        on_ready: Callable[[], Awaitable[T]],
    ) -> T:
        for attempt in range(1, self.max_attempts + 1):
            state = await check_ready()
            if state is ReadyState.READY:
                logger.debug(f"Run ready after {attempt} poll(s)")
                return await on_ready()
            if state is ReadyState.FAILED:
                raise RunFailed(f"run failed (poll {attempt})")
            await self._sleep(self.interval)

        logger.warning(f"Run not ready after {self.max_attempts} polls")
        raise RunTimeout(f"not ready after {self.max_attempts} polls")
