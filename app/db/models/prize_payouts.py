from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import BigInteger, CheckConstraint, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class PrizePayout(Base):
    __tablename__ = "prize_payouts"
    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_prize_payouts_amount_positive"),
        CheckConstraint(
            "payment_status IN ('PENDING','PAID','REJECTED')",
            name="ck_prize_payouts_payment_status",
        ),
        Index("idx_prize_payouts_user_created", "user_id", "created_at"),
        Index("idx_prize_payouts_created_amount", "created_at", "amount"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id"), nullable=False)
    session_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("game_sessions.id"),
        unique=True,
        nullable=False,
    )
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    payment_status: Mapped[str] = mapped_column(String(16), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
