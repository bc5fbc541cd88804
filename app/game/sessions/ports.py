from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Protocol
from uuid import UUID

from app.game.questions.types import TriviaQuestion
from app.game.sessions.types import (
    Channel,
    CompletionRecord,
    GameKind,
    GameSessionState,
    LeaderboardEntry,
    Lifeline,
    StaleSession,
    TournamentEntry,
)


class MessageSender(Protocol):
    async def send_message(self, channel: Channel, recipient: str, text: str) -> None: ...


class QuestionProvider(Protocol):
    async def get_question_by_difficulty(
        self,
        question_number: int,
        *,
        exclude_ids: Sequence[int],
        game_kind: GameKind,
        tournament_id: UUID | None = None,
    ) -> TriviaQuestion | None: ...

    async def get_question_by_id(self, question_id: int) -> TriviaQuestion | None: ...

    async def update_stats(self, question_id: int, *, was_correct: bool) -> None: ...


class PaymentProvider(Protocol):
    async def has_entries_remaining(self, user_id: int) -> bool: ...

    async def deduct_entry(self, user_id: int) -> int | None:
        """Returns the remaining count, or None when nothing was deducted."""
        ...

    async def refund_entry(self, user_id: int) -> None: ...


class TournamentProvider(Protocol):
    async def get_status(self, user_id: int, tournament_id: UUID) -> TournamentEntry: ...

    async def deduct_token(self, user_id: int, tournament_id: UUID) -> bool: ...

    async def refund_token(self, user_id: int, tournament_id: UUID) -> None: ...

    async def record_attempt(
        self,
        *,
        user_id: int,
        tournament_id: UUID,
        session_id: UUID,
        score: int,
        questions_answered: int,
    ) -> None: ...


class StreakRecorder(Protocol):
    async def record_game(self, user_id: int, *, game_kind: GameKind, now_utc: datetime) -> None: ...


class SessionStore(Protocol):
    async def get_by_id(self, session_id: UUID) -> GameSessionState | None: ...

    async def get_active_for_user(self, user_id: int) -> GameSessionState | None: ...

    async def create_active(self, state: GameSessionState) -> GameSessionState:
        """Raises ActiveSessionExistsError when the user already has an active row."""
        ...

    async def update_progress(self, state: GameSessionState) -> bool:
        """Persists question/score/current question id while the row is still active."""
        ...

    async def mark_lifeline_used(self, session_id: UUID, lifeline: Lifeline) -> bool: ...

    async def finalize(self, record: CompletionRecord) -> bool:
        """Check-and-set ACTIVE -> terminal; aggregates and payout apply only on success."""
        ...

    async def cancel_active_for_user(self, user_id: int, *, now_utc: datetime) -> list[StaleSession]: ...

    async def cancel_started_before(self, cutoff_utc: datetime, *, now_utc: datetime) -> list[StaleSession]: ...

    async def daily_leaderboard(self, *, since_utc: datetime, limit: int) -> list[LeaderboardEntry]: ...


class ExpiryStore(Protocol):
    async def set_with_ttl(self, key: str, value: str, ttl_seconds: float) -> None: ...

    async def get(self, key: str) -> str | None: ...

    async def delete(self, key: str) -> None: ...

    async def delete_many(self, keys: Sequence[str]) -> None: ...

    async def scan(self, prefix: str) -> list[str]: ...
