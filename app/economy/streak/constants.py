from __future__ import annotations

LAGOS_TIMEZONE = "Africa/Lagos"

REWARD_COOLDOWN_DAYS = 30

# streak length -> free game entries
STREAK_REWARDS: dict[int, int] = {
    3: 1,
    7: 2,
    14: 3,
    30: 5,
    60: 10,
}

# (minimum streak, badge), highest first
STREAK_BADGES: tuple[tuple[int, str], ...] = (
    (60, "diamond"),
    (30, "trophy"),
    (14, "fire3"),
    (7, "fire2"),
    (3, "fire1"),
)
