from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, timedelta

from app.economy.streak.constants import REWARD_COOLDOWN_DAYS, STREAK_BADGES, STREAK_REWARDS
from app.economy.streak.types import StreakChange, StreakSnapshot


def badge_for_streak(streak: int) -> str | None:
    for minimum, badge in STREAK_BADGES:
        if streak >= minimum:
            return badge
    return None


def record_activity(snapshot: StreakSnapshot, *, local_date: date) -> tuple[StreakSnapshot, StreakChange]:
    last_date = snapshot.last_activity_local_date
    if last_date == local_date:
        return snapshot, StreakChange.ALREADY_COUNTED

    if last_date is None:
        current_streak, change = 1, StreakChange.STARTED
    elif last_date == local_date - timedelta(days=1):
        current_streak, change = snapshot.current_streak + 1, StreakChange.CONTINUED
    else:
        current_streak, change = 1, StreakChange.RESET

    updated = replace(
        snapshot,
        current_streak=current_streak,
        best_streak=max(snapshot.best_streak, current_streak),
        last_activity_local_date=local_date,
        badge=badge_for_streak(current_streak),
    )
    return updated, change


def reward_for_streak(snapshot: StreakSnapshot, *, now_utc: datetime) -> int:
    """Free game entries earned at this streak length, or 0 when not due."""
    games = STREAK_REWARDS.get(snapshot.current_streak, 0)
    if games <= 0:
        return 0
    if (
        snapshot.last_reward_streak == snapshot.current_streak
        and snapshot.last_reward_at is not None
        and now_utc - snapshot.last_reward_at < timedelta(days=REWARD_COOLDOWN_DAYS)
    ):
        return 0
    return games
