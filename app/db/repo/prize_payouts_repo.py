from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.prize_payouts import PrizePayout
from app.db.models.users import User


class PrizePayoutsRepo:
    @staticmethod
    async def create_pending(
        session: AsyncSession,
        *,
        user_id: int,
        session_id: UUID,
        amount: int,
        created_at: datetime,
    ) -> bool:
        stmt = (
            insert(PrizePayout)
            .values(
                user_id=user_id,
                session_id=session_id,
                amount=amount,
                payment_status="PENDING",
                created_at=created_at,
            )
            .on_conflict_do_nothing(index_elements=[PrizePayout.session_id])
            .returning(PrizePayout.id)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none() is not None

    @staticmethod
    async def top_since(
        session: AsyncSession,
        *,
        since_utc: datetime,
        limit: int,
    ) -> list[tuple[str | None, int]]:
        stmt = (
            select(User.full_name, PrizePayout.amount)
            .join(User, User.id == PrizePayout.user_id)
            .where(PrizePayout.created_at >= since_utc)
            .order_by(PrizePayout.amount.desc(), PrizePayout.created_at.asc())
            .limit(limit)
        )
        result = await session.execute(stmt)
        return [(row[0], int(row[1])) for row in result.all()]
