from __future__ import annotations

import asyncio

import pytest

from app.game.sessions.locks import KeyedLocks
from app.game.sessions.timers import TimerKind, TimerRegistry, continuation_key, session_prefix, timeout_key


def _recorder(log: list[str], label: str):
    async def callback() -> None:
        log.append(label)

    return callback


@pytest.mark.asyncio
async def test_scheduled_callback_runs_once_and_unregisters() -> None:
    registry = TimerRegistry()
    fired: list[str] = []

    registry.schedule("s1:q1", session_key="s1", kind=TimerKind.TIMEOUT, delay_seconds=0.01, callback=_recorder(fired, "q1"))
    assert "s1:q1" in registry
    await asyncio.sleep(0.05)

    assert fired == ["q1"]
    assert "s1:q1" not in registry
    assert len(registry) == 0


@pytest.mark.asyncio
async def test_rescheduling_a_key_replaces_the_previous_handle() -> None:
    registry = TimerRegistry()
    fired: list[str] = []

    first = registry.schedule("k", session_key="s", kind=TimerKind.TIMEOUT, delay_seconds=0.02, callback=_recorder(fired, "first"))
    registry.schedule("k", session_key="s", kind=TimerKind.TIMEOUT, delay_seconds=0.02, callback=_recorder(fired, "second"))
    await asyncio.sleep(0.06)

    assert fired == ["second"]
    assert first.task.cancelled()


@pytest.mark.asyncio
async def test_cancel_prefix_only_touches_that_session() -> None:
    registry = TimerRegistry()
    fired: list[str] = []
    for key, session_key in (
        (timeout_key("abc", 1), "abc"),
        (continuation_key("abc"), "abc"),
        (timeout_key("abcd", 1), "abcd"),
    ):
        registry.schedule(key, session_key=session_key, kind=TimerKind.TIMEOUT, delay_seconds=0.02, callback=_recorder(fired, key))

    assert registry.cancel_prefix(session_prefix("abc")) == 2
    await asyncio.sleep(0.05)

    assert fired == [timeout_key("abcd", 1)]


@pytest.mark.asyncio
async def test_callback_may_cancel_its_own_session_prefix() -> None:
    registry = TimerRegistry()
    finished: list[str] = []

    async def callback() -> None:
        registry.cancel_prefix(session_prefix("s"))
        await asyncio.sleep(0)
        finished.append("done")

    registry.schedule(timeout_key("s", 1), session_key="s", kind=TimerKind.TIMEOUT, delay_seconds=0, callback=callback)
    await asyncio.sleep(0.02)

    assert finished == ["done"]


@pytest.mark.asyncio
async def test_failing_callback_is_contained() -> None:
    registry = TimerRegistry()

    async def boom() -> None:
        raise RuntimeError("boom")

    handle = registry.schedule("k", session_key="s", kind=TimerKind.CONTINUATION, delay_seconds=0, callback=boom)
    await asyncio.sleep(0.01)

    assert handle.task.done()
    assert handle.task.exception() is None


@pytest.mark.asyncio
async def test_discard_ignores_superseded_handles() -> None:
    registry = TimerRegistry()
    old = registry.schedule("k", session_key="s", kind=TimerKind.TIMEOUT, delay_seconds=1, callback=_recorder([], "a"))
    current = registry.schedule("k", session_key="s", kind=TimerKind.TIMEOUT, delay_seconds=1, callback=_recorder([], "b"))

    assert registry.discard(old) is False
    assert registry.get("k") is current
    assert registry.discard(current) is True
    assert len(registry) == 0


@pytest.mark.asyncio
async def test_close_cancels_everything_and_refuses_new_timers() -> None:
    registry = TimerRegistry()
    handle = registry.schedule("k", session_key="s", kind=TimerKind.TIMEOUT, delay_seconds=10, callback=_recorder([], "a"))

    await registry.close()

    assert handle.task.cancelled()
    with pytest.raises(RuntimeError):
        registry.schedule("k2", session_key="s", kind=TimerKind.TIMEOUT, delay_seconds=1, callback=_recorder([], "b"))


@pytest.mark.asyncio
async def test_keyed_locks_serialize_same_key_and_clean_up() -> None:
    locks = KeyedLocks()
    order: list[str] = []

    async def worker(label: str, key: str) -> None:
        async with locks.hold(key):
            order.append(f"{label}:in")
            await asyncio.sleep(0.01)
            order.append(f"{label}:out")

    await asyncio.gather(worker("a", "user:1"), worker("b", "user:1"))

    assert order in (
        ["a:in", "a:out", "b:in", "b:out"],
        ["b:in", "b:out", "a:in", "a:out"],
    )
    assert len(locks) == 0


@pytest.mark.asyncio
async def test_keyed_locks_do_not_block_other_keys() -> None:
    locks = KeyedLocks()
    entered: list[str] = []

    async with locks.hold("user:1"):
        async with locks.hold("user:2"):
            entered.append("both")

    assert entered == ["both"]
