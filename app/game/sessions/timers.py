from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum

import structlog

logger = structlog.get_logger("app.game.sessions.timers")

TimerCallback = Callable[[], Awaitable[None]]


class TimerKind(str, Enum):
    TIMEOUT = "TIMEOUT"
    CONTINUATION = "CONTINUATION"


@dataclass(slots=True)
class TimerHandle:
    key: str
    session_key: str
    kind: TimerKind
    fires_at: float
    task: asyncio.Task[None]
    question_number: int | None = None

    @property
    def done(self) -> bool:
        return self.task.done()


def timeout_key(session_key: str, question_number: int) -> str:
    return f"{session_key}:q{question_number}"


def continuation_key(session_key: str) -> str:
    return f"{session_key}:next"


def session_prefix(session_key: str) -> str:
    return f"{session_key}:"


class TimerRegistry:
    """Process-local registry of scheduled timeout callbacks and pacing continuations.

    At most one live handle exists per key: scheduling a key cancels the
    previous handle first. A handle is unregistered right before its
    callback runs, so the callback may cancel its own session prefix or
    re-arm the same key without cancelling itself.
    """

    def __init__(self) -> None:
        self._handles: dict[str, TimerHandle] = {}
        self._closed = False

    def __len__(self) -> int:
        return len(self._handles)

    def __contains__(self, key: object) -> bool:
        return key in self._handles

    def get(self, key: str) -> TimerHandle | None:
        return self._handles.get(key)

    def handles(self) -> list[TimerHandle]:
        return list(self._handles.values())

    def schedule(
        self,
        key: str,
        *,
        session_key: str,
        kind: TimerKind,
        delay_seconds: float,
        callback: TimerCallback,
        question_number: int | None = None,
    ) -> TimerHandle:
        if self._closed:
            raise RuntimeError("timer registry is closed")
        self.cancel(key)
        delay = max(0.0, float(delay_seconds))

        async def runner() -> None:
            await asyncio.sleep(delay)
            current = self._handles.get(key)
            if current is not None and current.task is asyncio.current_task():
                del self._handles[key]
            try:
                await callback()
            except Exception:
                logger.exception(
                    "timer_callback_failed",
                    timer_key=key,
                    timer_kind=kind.value,
                    session_key=session_key,
                )

        task = asyncio.get_running_loop().create_task(runner(), name=f"timer:{key}")
        handle = TimerHandle(
            key=key,
            session_key=session_key,
            kind=kind,
            fires_at=time.time() + delay,
            task=task,
            question_number=question_number,
        )
        self._handles[key] = handle
        return handle

    def cancel(self, key: str) -> bool:
        handle = self._handles.pop(key, None)
        if handle is None:
            return False
        self._cancel_task(handle)
        return True

    def cancel_prefix(self, prefix: str) -> int:
        keys = [key for key in self._handles if key.startswith(prefix)]
        for key in keys:
            self.cancel(key)
        return len(keys)

    def discard(self, handle: TimerHandle) -> bool:
        """Cancels ``handle`` only if it is still the registered one for its key."""
        if self._handles.get(handle.key) is not handle:
            return False
        return self.cancel(handle.key)

    async def close(self) -> None:
        self._closed = True
        handles = list(self._handles.values())
        self._handles.clear()
        for handle in handles:
            self._cancel_task(handle)
        tasks = [handle.task for handle in handles if handle.task is not asyncio.current_task()]
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    @staticmethod
    def _cancel_task(handle: TimerHandle) -> None:
        if handle.task.done() or handle.task is asyncio.current_task():
            return
        handle.task.cancel()
