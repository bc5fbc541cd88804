from __future__ import annotations

from datetime import date, datetime
from zoneinfo import ZoneInfo

from app.economy.streak.constants import LAGOS_TIMEZONE


def lagos_local_date(now_utc: datetime) -> date:
    """Converts UTC datetime to Lagos local date."""
    return now_utc.astimezone(ZoneInfo(LAGOS_TIMEZONE)).date()
