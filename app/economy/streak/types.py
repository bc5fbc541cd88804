from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum


class StreakChange(str, Enum):
    STARTED = "STARTED"
    CONTINUED = "CONTINUED"
    RESET = "RESET"
    ALREADY_COUNTED = "ALREADY_COUNTED"


@dataclass(slots=True)
class StreakSnapshot:
    current_streak: int
    best_streak: int
    last_activity_local_date: date | None
    badge: str | None
    last_reward_streak: int | None
    last_reward_at: datetime | None


@dataclass(frozen=True, slots=True)
class StreakActivityResult:
    change: StreakChange
    current_streak: int
    best_streak: int
    badge: str | None
    reward_games: int = 0
