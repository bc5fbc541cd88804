from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from uuid import UUID


class GameKind(str, Enum):
    PRACTICE = "PRACTICE"
    REGULAR = "REGULAR"
    TOURNAMENT = "TOURNAMENT"


class SessionStatus(str, Enum):
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class Channel(str, Enum):
    TELEGRAM = "TELEGRAM"
    WHATSAPP = "WHATSAPP"


class Lifeline(str, Enum):
    ELIMINATE_TWO = "ELIMINATE_TWO"
    REPLACE_QUESTION = "REPLACE_QUESTION"


class GameOutcome(str, Enum):
    GRAND_PRIZE = "GRAND_PRIZE"
    LOST = "LOST"
    TIMED_OUT = "TIMED_OUT"


@dataclass(frozen=True, slots=True)
class Player:
    user_id: int
    channel: Channel
    address: str
    display_name: str | None = None


@dataclass(slots=True)
class GameSessionState:
    session_id: UUID
    session_key: str
    user_id: int
    game_kind: GameKind
    channel: Channel
    recipient: str
    status: SessionStatus
    current_question: int
    current_score: int
    started_at: datetime
    current_question_id: int | None = None
    eliminate_two_used: bool = False
    replace_question_used: bool = False
    tournament_id: UUID | None = None
    entry_consumed: bool = False
    final_score: int | None = None
    completed_at: datetime | None = None
    questions_answered: int = 0

    @property
    def is_active(self) -> bool:
        return self.status == SessionStatus.ACTIVE

    def lifeline_used(self, lifeline: Lifeline) -> bool:
        if lifeline == Lifeline.ELIMINATE_TWO:
            return self.eliminate_two_used
        return self.replace_question_used


@dataclass(frozen=True, slots=True)
class CompletionRecord:
    """Terminal transition request applied atomically by the session store."""

    session_id: UUID
    user_id: int
    status: SessionStatus
    final_score: int
    question_reached: int
    questions_answered: int
    write_payout: bool
    completed_at: datetime


@dataclass(frozen=True, slots=True)
class StaleSession:
    session_id: UUID
    session_key: str
    user_id: int


@dataclass(frozen=True, slots=True)
class LeaderboardEntry:
    display_name: str
    amount: int


@dataclass(frozen=True, slots=True)
class TournamentEntry:
    exists: bool
    name: str | None = None
    joined: bool = False
    payment_complete: bool = False
    uses_tokens: bool = False
    tokens_remaining: int = 0

    @property
    def can_play(self) -> bool:
        if not (self.exists and self.joined and self.payment_complete):
            return False
        return not self.uses_tokens or self.tokens_remaining > 0
