from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime, timedelta

import structlog

from app.game.sessions.engine.cache import TimeoutMarker, purge_session_cache
from app.game.sessions.engine.deps import GameTiming, utc_now
from app.game.sessions.expiry import timeout_marker_key
from app.game.sessions.ports import ExpiryStore, SessionStore
from app.game.sessions.timers import TimerKind, TimerRegistry, session_prefix

logger = structlog.get_logger("app.game.sessions.maintenance")


@dataclass(frozen=True, slots=True)
class ZombieSweepResult:
    cancelled: int
    timers_cancelled: int


@dataclass(frozen=True, slots=True)
class TimerSweepResult:
    inspected: int
    discarded: int


class MaintenanceSweeper:
    def __init__(
        self,
        *,
        store: SessionStore,
        expiry: ExpiryStore,
        timers: TimerRegistry,
        timing: GameTiming,
        zombie_max_age: timedelta = timedelta(hours=1),
        zombie_interval_seconds: float = 600,
        timer_interval_seconds: float = 300,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._store = store
        self._expiry = expiry
        self._timers = timers
        self._timing = timing
        self._zombie_max_age = zombie_max_age
        self._zombie_interval_seconds = zombie_interval_seconds
        self._timer_interval_seconds = timer_interval_seconds
        self._clock = clock
        self._tasks: list[asyncio.Task[None]] = []

    async def sweep_zombies(self) -> ZombieSweepResult:
        now_utc = self._clock()
        stale_sessions = await self._store.cancel_started_before(now_utc - self._zombie_max_age, now_utc=now_utc)
        timers_cancelled = 0
        for stale in stale_sessions:
            timers_cancelled += self._timers.cancel_prefix(session_prefix(stale.session_key))
            try:
                await purge_session_cache(self._expiry, session_key=stale.session_key, user_id=stale.user_id)
            except Exception:
                logger.exception("zombie_cache_purge_failed", session_key=stale.session_key)
        if stale_sessions:
            logger.info(
                "zombie_sessions_cancelled",
                cancelled=len(stale_sessions),
                timers_cancelled=timers_cancelled,
            )
        return ZombieSweepResult(cancelled=len(stale_sessions), timers_cancelled=timers_cancelled)

    async def sweep_timers(self) -> TimerSweepResult:
        now_ms = int(self._clock().timestamp() * 1000)
        buffer_ms = int(self._timing.marker_buffer_seconds * 1000)
        handles = self._timers.handles()
        discarded = 0
        for handle in handles:
            if handle.kind != TimerKind.TIMEOUT or handle.question_number is None:
                continue
            raw = await self._expiry.get(timeout_marker_key(handle.session_key, handle.question_number))
            marker = TimeoutMarker.from_json(raw) if raw is not None else None
            if marker is not None and marker.deadline_ms + buffer_ms > now_ms:
                continue
            if self._timers.discard(handle):
                discarded += 1
                logger.info(
                    "stale_timer_discarded",
                    timer_key=handle.key,
                    marker_present=marker is not None,
                )
        return TimerSweepResult(inspected=len(handles), discarded=discarded)

    async def _loop(self, name: str, interval_seconds: float, sweep: Callable[[], Awaitable[object]]) -> None:
        while True:
            await asyncio.sleep(interval_seconds)
            try:
                await sweep()
            except Exception:
                logger.exception("maintenance_sweep_failed", sweep=name)

    def start(self) -> None:
        if self._tasks:
            return
        self._tasks = [
            asyncio.create_task(
                self._loop("zombie", self._zombie_interval_seconds, self.sweep_zombies),
                name="maintenance:zombie",
            ),
            asyncio.create_task(
                self._loop("timers", self._timer_interval_seconds, self.sweep_timers),
                name="maintenance:timers",
            ),
        ]
        logger.info("maintenance_sweeper_started")

    async def stop(self) -> None:
        tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        logger.info("maintenance_sweeper_stopped")
