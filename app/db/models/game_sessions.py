from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    SmallInteger,
    String,
    text,
)
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class GameSession(Base):
    __tablename__ = "game_sessions"
    __table_args__ = (
        CheckConstraint(
            "game_kind IN ('PRACTICE','REGULAR','TOURNAMENT')",
            name="ck_game_sessions_game_kind",
        ),
        CheckConstraint(
            "status IN ('ACTIVE','COMPLETED','CANCELLED')",
            name="ck_game_sessions_status",
        ),
        CheckConstraint("channel IN ('TELEGRAM','WHATSAPP')", name="ck_game_sessions_channel"),
        CheckConstraint(
            "current_question >= 1 AND current_question <= 16",
            name="ck_game_sessions_current_question_range",
        ),
        CheckConstraint("current_score >= 0", name="ck_game_sessions_score_non_negative"),
        CheckConstraint(
            "(game_kind != 'TOURNAMENT') OR tournament_id IS NOT NULL",
            name="ck_game_sessions_tournament_link",
        ),
        Index("idx_game_sessions_user_started", "user_id", "started_at"),
        Index("idx_game_sessions_status_started", "status", "started_at"),
        Index(
            "uq_game_sessions_user_active",
            "user_id",
            unique=True,
            postgresql_where=text("status = 'ACTIVE'"),
        ),
    )

    id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True)
    session_key: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id"), nullable=False)
    game_kind: Mapped[str] = mapped_column(String(16), nullable=False)
    tournament_id: Mapped[UUID | None] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("tournaments.id"),
        nullable=True,
    )
    entry_consumed: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("false"))
    channel: Mapped[str] = mapped_column(String(16), nullable=False)
    recipient: Mapped[str] = mapped_column(String(64), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False)
    current_question: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    current_score: Mapped[int] = mapped_column(Integer, nullable=False)
    current_question_id: Mapped[int | None] = mapped_column(
        BigInteger,
        ForeignKey("questions.id"),
        nullable=True,
    )
    lifeline_eliminate_two_used: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        server_default=text("false"),
    )
    lifeline_replace_question_used: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        server_default=text("false"),
    )
    final_score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    questions_answered: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
