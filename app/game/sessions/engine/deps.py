from __future__ import annotations

import random
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone

from app.core.config import Settings
from app.game.prize_ladder import REFERENCE_LADDER, PrizeLadder
from app.game.sessions.locks import KeyedLocks
from app.game.sessions.ports import (
    ExpiryStore,
    MessageSender,
    PaymentProvider,
    QuestionProvider,
    SessionStore,
    StreakRecorder,
    TournamentProvider,
)
from app.game.sessions.timers import TimerRegistry


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, slots=True)
class GameTiming:
    question_timeout_seconds: float = 15.0
    marker_buffer_seconds: float = 3.0
    next_question_delay_seconds: float = 3.0
    ready_delay_seconds: float = 2.0
    ready_ttl_seconds: float = 300.0
    session_cache_ttl_seconds: float = 3600.0

    @classmethod
    def from_settings(cls, settings: Settings) -> GameTiming:
        return cls(
            question_timeout_seconds=settings.game_question_timeout_seconds,
            marker_buffer_seconds=settings.game_timeout_marker_buffer_seconds,
            next_question_delay_seconds=settings.game_next_question_delay_seconds,
            ready_delay_seconds=settings.game_ready_delay_seconds,
            ready_ttl_seconds=settings.game_ready_ttl_seconds,
            session_cache_ttl_seconds=settings.game_session_cache_ttl_seconds,
        )

    @property
    def marker_ttl_seconds(self) -> float:
        return self.question_timeout_seconds + self.marker_buffer_seconds


@dataclass(slots=True)
class EngineDeps:
    store: SessionStore
    expiry: ExpiryStore
    timers: TimerRegistry
    questions: QuestionProvider
    payments: PaymentProvider
    tournaments: TournamentProvider
    sender: MessageSender
    streaks: StreakRecorder | None = None
    ladder: PrizeLadder = REFERENCE_LADDER
    timing: GameTiming = field(default_factory=GameTiming)
    regular_games_paid: bool = True
    locks: KeyedLocks = field(default_factory=KeyedLocks)
    clock: Callable[[], datetime] = utc_now
    rng: random.Random = field(default_factory=random.Random)

    def now_ms(self) -> int:
        return int(self.clock().timestamp() * 1000)


def user_lock_key(user_id: int) -> str:
    return f"user:{user_id}"
