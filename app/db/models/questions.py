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
    Text,
    text,
)
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class Question(Base):
    __tablename__ = "questions"
    __table_args__ = (
        CheckConstraint(
            "correct_answer IN ('A','B','C','D')",
            name="ck_questions_correct_answer",
        ),
        CheckConstraint("difficulty >= 1 AND difficulty <= 15", name="ck_questions_difficulty_range"),
        CheckConstraint(
            "game_mode IN ('PRACTICE','REGULAR','TOURNAMENT')",
            name="ck_questions_game_mode",
        ),
        Index("idx_questions_mode_difficulty", "game_mode", "difficulty", "is_active"),
        Index("idx_questions_tournament", "tournament_id"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    question_text: Mapped[str] = mapped_column(Text, nullable=False)
    option_a: Mapped[str] = mapped_column(Text, nullable=False)
    option_b: Mapped[str] = mapped_column(Text, nullable=False)
    option_c: Mapped[str] = mapped_column(Text, nullable=False)
    option_d: Mapped[str] = mapped_column(Text, nullable=False)
    correct_answer: Mapped[str] = mapped_column(String(1), nullable=False)
    difficulty: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    game_mode: Mapped[str] = mapped_column(String(16), nullable=False, server_default=text("'REGULAR'"))
    tournament_id: Mapped[UUID | None] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("tournaments.id"),
        nullable=True,
    )
    category: Mapped[str | None] = mapped_column(String(64), nullable=True)
    fun_fact: Mapped[str | None] = mapped_column(Text, nullable=True)
    times_asked: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    times_correct: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("true"))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("now()"),
    )
