import asyncio
import os
import sys

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from relaybot.engine.waiter import RunWaiter
from relaybot.errors import RunFailed, RunTimeout
from relaybot.models import ReadyState
from fakes import SleepRecorder


def scripted_check(*states):
    """Return a check_ready coroutine that walks through the given states."""
    remaining = list(states)
    seen = []

    async def check_ready():
        state = remaining.pop(0) if len(remaining) > 1 else remaining[0]
        seen.append(state)
        return state

    check_ready.seen = seen
    return check_ready


class ActionCounter:
    def __init__(self, value="reply"):
        self.count = 0
        self.value = value

    async def __call__(self):
        self.count += 1
        return self.value


@pytest.mark.asyncio
async def test_ready_on_first_check_runs_action_once_without_sleeping():
    sleeper = SleepRecorder()
    action = ActionCounter("done")
    waiter = RunWaiter(timeout=5, interval=0.5, max_attempts=100, sleep=sleeper)

    result = await waiter.wait(scripted_check(ReadyState.READY), action)

    assert result == "done"
    assert action.count == 1
    assert sleeper.calls == []


@pytest.mark.asyncio
async def test_polls_until_ready_sleeping_between_checks():
    sleeper = SleepRecorder()
    action = ActionCounter()
    check = scripted_check(ReadyState.NOT_READY, ReadyState.NOT_READY, ReadyState.READY)
    waiter = RunWaiter(timeout=5, interval=0.25, max_attempts=100, sleep=sleeper)

    assert await waiter.wait(check, action) == "reply"
    assert len(check.seen) == 3
    assert sleeper.calls == [0.25, 0.25]
    assert action.count == 1


@pytest.mark.asyncio
async def test_failed_state_rejects_without_running_action():
    sleeper = SleepRecorder()
    action = ActionCounter()
    check = scripted_check(ReadyState.NOT_READY, ReadyState.FAILED)
    waiter = RunWaiter(timeout=5, interval=0.5, max_attempts=100, sleep=sleeper)

    with pytest.raises(RunFailed):
        await waiter.wait(check, action)

    assert action.count == 0
    assert len(sleeper.calls) == 1


@pytest.mark.asyncio
async def test_poll_budget_exhausted_raises_timeout():
    sleeper = SleepRecorder()
    action = ActionCounter()
    check = scripted_check(ReadyState.NOT_READY)
    waiter = RunWaiter(timeout=5, interval=0.5, max_attempts=3, sleep=sleeper)

    with pytest.raises(RunTimeout):
        await waiter.wait(check, action)

    assert len(check.seen) == 3
    assert action.count == 0


@pytest.mark.asyncio
async def test_deadline_fires_before_poll_budget():
    action = ActionCounter()
    check = scripted_check(ReadyState.NOT_READY)
    waiter = RunWaiter(timeout=0.05, interval=0.01, max_attempts=10_000)

    loop = asyncio.get_running_loop()
    started = loop.time()
    with pytest.raises(RunTimeout):
        await waiter.wait(check, action)

    assert loop.time() - started < 1.0
    assert len(check.seen) < 10_000
    assert action.count == 0


@pytest.mark.asyncio
async def test_deadline_abandons_a_hung_status_check():
    action = ActionCounter()

    async def hung_check():
        await asyncio.sleep(10)
        return ReadyState.READY

    waiter = RunWaiter(timeout=5, interval=0.5, max_attempts=100)

    with pytest.raises(RunTimeout):
        await waiter.wait(hung_check, action, timeout=0.05)

    assert action.count == 0
