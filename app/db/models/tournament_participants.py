from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import BigInteger, CheckConstraint, DateTime, ForeignKey, Index, Integer, String, text
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class TournamentParticipant(Base):
    __tablename__ = "tournament_participants"
    __table_args__ = (
        CheckConstraint(
            "tokens_remaining >= 0",
            name="ck_tournament_participants_tokens_non_negative",
        ),
        CheckConstraint(
            "payment_status IN ('NOT_REQUIRED','PENDING','SUCCESS','FAILED')",
            name="ck_tournament_participants_payment_status",
        ),
        Index(
            "idx_tournament_participants_tournament_best",
            "tournament_id",
            "best_score",
        ),
    )

    tournament_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("tournaments.id"),
        primary_key=True,
    )
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id"), primary_key=True)
    payment_status: Mapped[str] = mapped_column(String(16), nullable=False)
    tokens_remaining: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    best_score: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    total_score: Mapped[int] = mapped_column(BigInteger, nullable=False, server_default=text("0"))
    games_played: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    joined_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
