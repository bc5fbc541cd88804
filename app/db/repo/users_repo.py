from __future__ import annotations

from datetime import datetime

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.users import User


class UsersRepo:
    @staticmethod
    async def get_by_id(session: AsyncSession, user_id: int) -> User | None:
        return await session.get(User, user_id)

    @staticmethod
    async def get_by_channel_address(session: AsyncSession, *, channel: str, address: str) -> User | None:
        stmt = select(User).where(User.channel == channel, User.address == address)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create(
        session: AsyncSession,
        *,
        channel: str,
        address: str,
        full_name: str | None,
        now_utc: datetime,
    ) -> User:
        user = User(
            channel=channel,
            address=address,
            full_name=full_name,
            status="ACTIVE",
            games_remaining=0,
            total_games_played=0,
            total_winnings=0,
            highest_question_reached=0,
            last_active_at=now_utc,
        )
        session.add(user)
        await session.flush()
        return user

    @staticmethod
    async def touch_last_active(session: AsyncSession, user_id: int, seen_at: datetime) -> int:
        stmt = update(User).where(User.id == user_id).values(last_active_at=seen_at)
        result = await session.execute(stmt)
        return result.rowcount or 0

    @staticmethod
    async def decrement_games_remaining(session: AsyncSession, user_id: int) -> int | None:
        stmt = (
            update(User)
            .where(User.id == user_id, User.games_remaining > 0)
            .values(games_remaining=User.games_remaining - 1)
            .returning(User.games_remaining)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def add_games_remaining(session: AsyncSession, *, user_id: int, amount: int) -> int:
        stmt = (
            update(User)
            .where(User.id == user_id)
            .values(games_remaining=User.games_remaining + amount)
            .returning(User.games_remaining)
        )
        result = await session.execute(stmt)
        return int(result.scalar_one())

    @staticmethod
    async def apply_game_result(
        session: AsyncSession,
        *,
        user_id: int,
        winnings: int,
        question_reached: int,
        played_at: datetime,
    ) -> int:
        stmt = (
            update(User)
            .where(User.id == user_id)
            .values(
                total_games_played=User.total_games_played + 1,
                total_winnings=User.total_winnings + winnings,
                highest_question_reached=func.greatest(User.highest_question_reached, question_reached),
                last_active_at=played_at,
            )
        )
        result = await session.execute(stmt)
        return result.rowcount or 0
