from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, CheckConstraint, DateTime, Index, Integer, SmallInteger, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class User(Base):
    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint(
            "status IN ('ACTIVE','BLOCKED','DELETED')",
            name="ck_users_status",
        ),
        CheckConstraint("channel IN ('TELEGRAM','WHATSAPP')", name="ck_users_channel"),
        CheckConstraint("games_remaining >= 0", name="ck_users_games_remaining_non_negative"),
        CheckConstraint(
            "highest_question_reached >= 0 AND highest_question_reached <= 16",
            name="ck_users_highest_question_range",
        ),
        Index("uq_users_channel_address", "channel", "address", unique=True),
        Index("idx_users_last_active", "last_active_at"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    channel: Mapped[str] = mapped_column(String(16), nullable=False)
    address: Mapped[str] = mapped_column(String(64), nullable=False)
    full_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False, server_default=text("'ACTIVE'"))
    games_remaining: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    total_games_played: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    total_winnings: Mapped[int] = mapped_column(BigInteger, nullable=False, server_default=text("0"))
    highest_question_reached: Mapped[int] = mapped_column(
        SmallInteger,
        nullable=False,
        server_default=text("0"),
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("now()"),
    )
    last_active_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
