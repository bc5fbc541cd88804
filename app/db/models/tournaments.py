from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import Boolean, CheckConstraint, DateTime, Index, Integer, String, text
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class Tournament(Base):
    __tablename__ = "tournaments"
    __table_args__ = (
        CheckConstraint("payment_type IN ('FREE','PAID')", name="ck_tournaments_payment_type"),
        CheckConstraint(
            "status IN ('UPCOMING','ACTIVE','COMPLETED','CANCELLED')",
            name="ck_tournaments_status",
        ),
        CheckConstraint("tokens_per_entry >= 0", name="ck_tournaments_tokens_per_entry_non_negative"),
        Index("idx_tournaments_status_ends", "status", "ends_at"),
    )

    id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    sponsor_name: Mapped[str | None] = mapped_column(String(128), nullable=True)
    payment_type: Mapped[str] = mapped_column(String(8), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False)
    uses_tokens: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("false"))
    tokens_per_entry: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    starts_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    ends_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
