from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import BigInteger, CheckConstraint, Date, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class StreakState(Base):
    __tablename__ = "streak_state"
    __table_args__ = (
        CheckConstraint("current_streak >= 0", name="ck_streak_state_current_streak_non_negative"),
        CheckConstraint("best_streak >= 0", name="ck_streak_state_best_streak_non_negative"),
        Index("idx_streak_last_activity", "last_activity_local_date"),
    )

    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id"), primary_key=True)
    current_streak: Mapped[int] = mapped_column(Integer, nullable=False)
    best_streak: Mapped[int] = mapped_column(Integer, nullable=False)
    last_activity_local_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    badge: Mapped[str | None] = mapped_column(String(16), nullable=True)
    last_reward_streak: Mapped[int | None] = mapped_column(Integer, nullable=True)
    last_reward_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
