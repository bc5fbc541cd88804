from __future__ import annotations

import asyncio
import random
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from uuid import UUID

from app.game.questions.types import OPTION_ORDER, OptionLetter, TriviaQuestion
from app.game.sessions.engine import EngineDeps, GameSessionEngine, GameTiming
from app.game.sessions.errors import ActiveSessionExistsError
from app.game.sessions.timers import TimerRegistry
from app.game.sessions.types import (
    Channel,
    CompletionRecord,
    GameKind,
    GameSessionState,
    LeaderboardEntry,
    Lifeline,
    Player,
    SessionStatus,
    StaleSession,
    TournamentEntry,
)

UTC = timezone.utc

FAST_TIMING = GameTiming(
    question_timeout_seconds=0.2,
    marker_buffer_seconds=0.1,
    next_question_delay_seconds=0.01,
    ready_delay_seconds=0.01,
    ready_ttl_seconds=5,
    session_cache_ttl_seconds=60,
)


@dataclass(slots=True)
class UserAggregate:
    total_games_played: int = 0
    total_winnings: int = 0
    highest_question_reached: int = 0


@dataclass(frozen=True, slots=True)
class Payout:
    user_id: int
    session_id: UUID
    amount: int
    created_at: datetime


class InMemorySessionStore:
    """Mirrors the SQL store contract: copies out, check-and-set on every transition."""

    def __init__(self) -> None:
        self.rows: dict[UUID, GameSessionState] = {}
        self.aggregates: dict[int, UserAggregate] = {}
        self.payouts: list[Payout] = []
        self.display_names: dict[int, str] = {}
        self.finalize_calls = 0

    def peek_active(self, user_id: int) -> GameSessionState | None:
        for row in self.rows.values():
            if row.user_id == user_id and row.status == SessionStatus.ACTIVE:
                return row
        return None

    def aggregate(self, user_id: int) -> UserAggregate:
        return self.aggregates.setdefault(user_id, UserAggregate())

    async def get_by_id(self, session_id: UUID) -> GameSessionState | None:
        row = self.rows.get(session_id)
        return replace(row) if row is not None else None

    async def get_active_for_user(self, user_id: int) -> GameSessionState | None:
        row = self.peek_active(user_id)
        return replace(row) if row is not None else None

    async def create_active(self, state: GameSessionState) -> GameSessionState:
        # yield so concurrent starters interleave like real I/O would
        await asyncio.sleep(0)
        if self.peek_active(state.user_id) is not None:
            raise ActiveSessionExistsError
        self.rows[state.session_id] = replace(state)
        return replace(state)

    async def update_progress(self, state: GameSessionState) -> bool:
        row = self.rows.get(state.session_id)
        if row is None or row.status != SessionStatus.ACTIVE:
            return False
        row.current_question = state.current_question
        row.current_score = state.current_score
        row.current_question_id = state.current_question_id
        row.questions_answered = state.questions_answered
        return True

    async def mark_lifeline_used(self, session_id: UUID, lifeline: Lifeline) -> bool:
        row = self.rows.get(session_id)
        if row is None or row.status != SessionStatus.ACTIVE or row.lifeline_used(lifeline):
            return False
        if lifeline == Lifeline.ELIMINATE_TWO:
            row.eliminate_two_used = True
        else:
            row.replace_question_used = True
        return True

    async def finalize(self, record: CompletionRecord) -> bool:
        self.finalize_calls += 1
        row = self.rows.get(record.session_id)
        if row is None or row.status != SessionStatus.ACTIVE:
            return False
        row.status = record.status
        row.final_score = record.final_score
        row.current_score = record.final_score
        row.completed_at = record.completed_at
        row.questions_answered = record.questions_answered

        aggregate = self.aggregate(record.user_id)
        aggregate.total_games_played += 1
        aggregate.total_winnings += record.final_score
        aggregate.highest_question_reached = max(aggregate.highest_question_reached, record.question_reached)
        if record.write_payout and record.final_score > 0:
            self.payouts.append(
                Payout(
                    user_id=record.user_id,
                    session_id=record.session_id,
                    amount=record.final_score,
                    created_at=record.completed_at,
                )
            )
        return True

    def _cancel(self, rows: list[GameSessionState], now_utc: datetime) -> list[StaleSession]:
        cancelled = []
        for row in rows:
            row.status = SessionStatus.CANCELLED
            row.completed_at = now_utc
            cancelled.append(StaleSession(session_id=row.session_id, session_key=row.session_key, user_id=row.user_id))
        return cancelled

    async def cancel_active_for_user(self, user_id: int, *, now_utc: datetime) -> list[StaleSession]:
        rows = [row for row in self.rows.values() if row.user_id == user_id and row.status == SessionStatus.ACTIVE]
        return self._cancel(rows, now_utc)

    async def cancel_started_before(self, cutoff_utc: datetime, *, now_utc: datetime) -> list[StaleSession]:
        rows = [
            row
            for row in self.rows.values()
            if row.status == SessionStatus.ACTIVE and row.started_at < cutoff_utc
        ]
        return self._cancel(rows, now_utc)

    async def daily_leaderboard(self, *, since_utc: datetime, limit: int) -> list[LeaderboardEntry]:
        todays = sorted(
            (payout for payout in self.payouts if payout.created_at >= since_utc),
            key=lambda payout: payout.amount,
            reverse=True,
        )
        return [
            LeaderboardEntry(display_name=self.display_names.get(payout.user_id, "Player"), amount=payout.amount)
            for payout in todays[:limit]
        ]


class InMemoryExpiryStore:
    def __init__(self) -> None:
        self._values: dict[str, tuple[str, float | None]] = {}

    def _alive(self, key: str) -> tuple[str, float | None] | None:
        entry = self._values.get(key)
        if entry is None:
            return None
        _, expires_at = entry
        if expires_at is not None and expires_at <= time.monotonic():
            del self._values[key]
            return None
        return entry

    def keys(self) -> list[str]:
        return [key for key in list(self._values) if self._alive(key) is not None]

    async def set_with_ttl(self, key: str, value: str, ttl_seconds: float) -> None:
        self._values[key] = (value, time.monotonic() + ttl_seconds)

    async def set_raw(self, key: str, value: str) -> None:
        self._values[key] = (value, None)

    async def get(self, key: str) -> str | None:
        entry = self._alive(key)
        return entry[0] if entry is not None else None

    async def delete(self, key: str) -> None:
        self._values.pop(key, None)

    async def delete_many(self, keys: Sequence[str]) -> None:
        for key in keys:
            self._values.pop(key, None)

    async def scan(self, prefix: str) -> list[str]:
        return [key for key in self.keys() if key.startswith(prefix)]


def make_question(question_id: int, difficulty: int, *, correct: OptionLetter = OptionLetter.A) -> TriviaQuestion:
    return TriviaQuestion(
        question_id=question_id,
        text=f"Question {question_id}?",
        options=(f"{question_id}-a", f"{question_id}-b", f"{question_id}-c", f"{question_id}-d"),
        correct_option=correct,
        difficulty=difficulty,
        fun_fact=None,
    )


class FakeQuestionProvider:
    def __init__(self, per_rung: int = 3, *, rungs: int = 15, match_difficulty: bool = True) -> None:
        self.questions: dict[int, TriviaQuestion] = {}
        for rung in range(1, rungs + 1):
            for offset in range(per_rung):
                question_id = rung * 100 + offset
                correct = OPTION_ORDER[(rung + offset) % len(OPTION_ORDER)]
                self.questions[question_id] = make_question(question_id, rung, correct=correct)
        self.exhausted_rungs: set[int] = set()
        self.requests: list[tuple[int, tuple[int, ...]]] = []
        self.stats: list[tuple[int, bool]] = []
        self.served: list[int] = []
        self.match_difficulty = match_difficulty

    async def get_question_by_difficulty(
        self,
        question_number: int,
        *,
        exclude_ids: Sequence[int],
        game_kind: GameKind,
        tournament_id: UUID | None = None,
    ) -> TriviaQuestion | None:
        self.requests.append((question_number, tuple(exclude_ids)))
        if question_number in self.exhausted_rungs:
            return None
        for question in self.questions.values():
            if self.match_difficulty and question.difficulty != question_number:
                continue
            if question.question_id not in exclude_ids:
                self.served.append(question.question_id)
                return question
        return None

    async def get_question_by_id(self, question_id: int) -> TriviaQuestion | None:
        return self.questions.get(question_id)

    async def update_stats(self, question_id: int, *, was_correct: bool) -> None:
        self.stats.append((question_id, was_correct))


class FakePaymentProvider:
    def __init__(self, entries: dict[int, int] | None = None) -> None:
        self.entries = dict(entries or {})
        self.deductions: list[int] = []
        self.refunds: list[int] = []

    async def has_entries_remaining(self, user_id: int) -> bool:
        return self.entries.get(user_id, 0) > 0

    async def deduct_entry(self, user_id: int) -> int | None:
        remaining = self.entries.get(user_id, 0)
        if remaining <= 0:
            return None
        self.entries[user_id] = remaining - 1
        self.deductions.append(user_id)
        return remaining - 1

    async def refund_entry(self, user_id: int) -> None:
        self.entries[user_id] = self.entries.get(user_id, 0) + 1
        self.refunds.append(user_id)


class FakeTournamentProvider:
    def __init__(self) -> None:
        self.entries: dict[tuple[int, UUID], TournamentEntry] = {}
        self.attempts: list[dict[str, object]] = []

    async def get_status(self, user_id: int, tournament_id: UUID) -> TournamentEntry:
        return self.entries.get((user_id, tournament_id), TournamentEntry(exists=False))

    async def deduct_token(self, user_id: int, tournament_id: UUID) -> bool:
        entry = self.entries.get((user_id, tournament_id))
        if entry is None or entry.tokens_remaining <= 0:
            return False
        self.entries[(user_id, tournament_id)] = replace(entry, tokens_remaining=entry.tokens_remaining - 1)
        return True

    async def refund_token(self, user_id: int, tournament_id: UUID) -> None:
        entry = self.entries[(user_id, tournament_id)]
        self.entries[(user_id, tournament_id)] = replace(entry, tokens_remaining=entry.tokens_remaining + 1)

    async def record_attempt(
        self,
        *,
        user_id: int,
        tournament_id: UUID,
        session_id: UUID,
        score: int,
        questions_answered: int,
    ) -> None:
        self.attempts.append(
            {
                "user_id": user_id,
                "tournament_id": tournament_id,
                "session_id": session_id,
                "score": score,
                "questions_answered": questions_answered,
            }
        )


class FakeStreakRecorder:
    def __init__(self) -> None:
        self.calls: list[tuple[int, GameKind]] = []

    async def record_game(self, user_id: int, *, game_kind: GameKind, now_utc: datetime) -> None:
        self.calls.append((user_id, game_kind))


class RecordingSender:
    def __init__(self) -> None:
        self.messages: list[tuple[Channel, str, str]] = []

    async def send_message(self, channel: Channel, recipient: str, text: str) -> None:
        self.messages.append((channel, recipient, text))

    @property
    def texts(self) -> list[str]:
        return [text for _, _, text in self.messages]

    def count(self, fragment: str) -> int:
        return sum(1 for text in self.texts if fragment in text)


class MutableClock:
    def __init__(self, now: datetime | None = None) -> None:
        self.now = now or datetime(2026, 3, 10, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


@dataclass(slots=True)
class EngineHarness:
    engine: GameSessionEngine
    store: InMemorySessionStore
    expiry: InMemoryExpiryStore
    questions: FakeQuestionProvider
    payments: FakePaymentProvider
    tournaments: FakeTournamentProvider
    streaks: FakeStreakRecorder
    sender: RecordingSender
    timers: TimerRegistry = field(default_factory=TimerRegistry)

    @property
    def deps(self) -> EngineDeps:
        return self.engine.deps


def build_harness(
    *,
    entries: dict[int, int] | None = None,
    timing: GameTiming = FAST_TIMING,
    clock: Callable[[], datetime] | None = None,
    regular_games_paid: bool = True,
) -> EngineHarness:
    store = InMemorySessionStore()
    expiry = InMemoryExpiryStore()
    questions = FakeQuestionProvider()
    payments = FakePaymentProvider(entries if entries is not None else {1: 5, 2: 5})
    tournaments = FakeTournamentProvider()
    streaks = FakeStreakRecorder()
    sender = RecordingSender()
    timers = TimerRegistry()
    deps = EngineDeps(
        store=store,
        expiry=expiry,
        timers=timers,
        questions=questions,
        payments=payments,
        tournaments=tournaments,
        sender=sender,
        streaks=streaks,
        timing=timing,
        regular_games_paid=regular_games_paid,
        rng=random.Random(7),
    )
    if clock is not None:
        deps.clock = clock
    return EngineHarness(
        engine=GameSessionEngine(deps),
        store=store,
        expiry=expiry,
        questions=questions,
        payments=payments,
        tournaments=tournaments,
        streaks=streaks,
        sender=sender,
        timers=timers,
    )


def player(user_id: int = 1, *, channel: Channel = Channel.TELEGRAM) -> Player:
    return Player(user_id=user_id, channel=channel, address=f"chat-{user_id}", display_name=f"P{user_id}")


async def wait_until(predicate: Callable[[], bool], *, timeout: float = 2.0) -> None:
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(0.005)


async def wait_for_question(harness: EngineHarness, user_id: int, rung: int) -> GameSessionState:
    def served() -> bool:
        row = harness.store.peek_active(user_id)
        return row is not None and row.current_question == rung and row.current_question_id is not None

    await wait_until(served)
    state = harness.store.peek_active(user_id)
    assert state is not None
    return replace(state)


async def start_and_serve_first(
    harness: EngineHarness,
    who: Player,
    game_kind: GameKind = GameKind.REGULAR,
    *,
    tournament_id: UUID | None = None,
) -> GameSessionState:
    await harness.engine.start(who, game_kind, tournament_id=tournament_id)
    assert await harness.engine.confirm_ready(who) is True
    return await wait_for_question(harness, who.user_id, 1)


def correct_letter(harness: EngineHarness, state: GameSessionState) -> str:
    assert state.current_question_id is not None
    return harness.questions.questions[state.current_question_id].correct_option.value


def wrong_letter(harness: EngineHarness, state: GameSessionState) -> str:
    correct = correct_letter(harness, state)
    return next(letter for letter in "ABCD" if letter != correct)


async def answer_correctly_through(harness: EngineHarness, who: Player, last_rung: int) -> GameSessionState:
    """Answers rungs from the current one up to ``last_rung`` and waits for the next question."""
    state = harness.store.peek_active(who.user_id)
    assert state is not None
    while state.current_question <= last_rung:
        rung = state.current_question
        state = await wait_for_question(harness, who.user_id, rung)
        await harness.engine.answer(who, correct_letter(harness, state))
        if rung == harness.deps.ladder.total_rungs:
            break
        state = await wait_for_question(harness, who.user_id, rung + 1)
    return state
