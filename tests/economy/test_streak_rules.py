from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

from app.economy.streak.rules import badge_for_streak, record_activity, reward_for_streak
from app.economy.streak.time import lagos_local_date
from app.economy.streak.types import StreakChange, StreakSnapshot

UTC = timezone.utc


def snapshot(
    *,
    current_streak: int = 0,
    best_streak: int = 0,
    last_activity_local_date: date | None = None,
    last_reward_streak: int | None = None,
    last_reward_at: datetime | None = None,
) -> StreakSnapshot:
    return StreakSnapshot(
        current_streak=current_streak,
        best_streak=best_streak,
        last_activity_local_date=last_activity_local_date,
        badge=badge_for_streak(current_streak),
        last_reward_streak=last_reward_streak,
        last_reward_at=last_reward_at,
    )


def test_first_activity_starts_streak() -> None:
    updated, change = record_activity(snapshot(), local_date=date(2026, 3, 10))

    assert change == StreakChange.STARTED
    assert updated.current_streak == 1
    assert updated.best_streak == 1
    assert updated.last_activity_local_date == date(2026, 3, 10)


def test_consecutive_day_continues_streak_and_awards_badge() -> None:
    before = snapshot(current_streak=2, best_streak=2, last_activity_local_date=date(2026, 3, 9))

    updated, change = record_activity(before, local_date=date(2026, 3, 10))

    assert change == StreakChange.CONTINUED
    assert updated.current_streak == 3
    assert updated.badge == "fire1"


def test_same_day_is_counted_once() -> None:
    before = snapshot(current_streak=4, best_streak=4, last_activity_local_date=date(2026, 3, 10))

    updated, change = record_activity(before, local_date=date(2026, 3, 10))

    assert change == StreakChange.ALREADY_COUNTED
    assert updated is before


def test_gap_resets_streak_but_keeps_best() -> None:
    before = snapshot(current_streak=9, best_streak=12, last_activity_local_date=date(2026, 3, 1))

    updated, change = record_activity(before, local_date=date(2026, 3, 10))

    assert change == StreakChange.RESET
    assert updated.current_streak == 1
    assert updated.best_streak == 12
    assert updated.badge is None


@pytest.mark.parametrize(
    ("streak", "badge"),
    [(0, None), (2, None), (3, "fire1"), (7, "fire2"), (13, "fire2"), (14, "fire3"), (30, "trophy"), (90, "diamond")],
)
def test_badge_thresholds(streak: int, badge: str | None) -> None:
    assert badge_for_streak(streak) == badge


@pytest.mark.parametrize(("streak", "games"), [(2, 0), (3, 1), (7, 2), (14, 3), (30, 5), (60, 10), (61, 0)])
def test_reward_milestones(streak: int, games: int) -> None:
    now = datetime(2026, 3, 10, 9, 0, tzinfo=UTC)

    assert reward_for_streak(snapshot(current_streak=streak, best_streak=streak), now_utc=now) == games


def test_reward_is_not_repeated_within_cooldown() -> None:
    now = datetime(2026, 3, 10, 9, 0, tzinfo=UTC)
    recently = snapshot(current_streak=7, best_streak=7, last_reward_streak=7, last_reward_at=now - timedelta(days=3))
    long_ago = snapshot(current_streak=7, best_streak=7, last_reward_streak=7, last_reward_at=now - timedelta(days=31))

    assert reward_for_streak(recently, now_utc=now) == 0
    assert reward_for_streak(long_ago, now_utc=now) == 2


def test_lagos_local_date_rolls_over_at_local_midnight() -> None:
    assert lagos_local_date(datetime(2026, 3, 10, 22, 59, tzinfo=UTC)) == date(2026, 3, 10)
    assert lagos_local_date(datetime(2026, 3, 10, 23, 0, tzinfo=UTC)) == date(2026, 3, 11)
