from __future__ import annotations

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.db.repo.users_repo import UsersRepo

logger = structlog.get_logger("app.economy.entries")


class EntriesService:
    @staticmethod
    async def games_remaining(session: AsyncSession, user_id: int) -> int:
        user = await UsersRepo.get_by_id(session, user_id)
        return 0 if user is None else user.games_remaining

    @staticmethod
    async def deduct_entry(session: AsyncSession, user_id: int) -> int | None:
        remaining = await UsersRepo.decrement_games_remaining(session, user_id)
        if remaining is None:
            logger.info("game_entry_deduct_rejected", user_id=user_id)
        return remaining

    @staticmethod
    async def grant_entries(session: AsyncSession, *, user_id: int, amount: int, reason: str) -> int:
        if amount <= 0:
            raise ValueError("amount must be positive")
        remaining = await UsersRepo.add_games_remaining(session, user_id=user_id, amount=amount)
        logger.info("game_entries_granted", user_id=user_id, amount=amount, reason=reason)
        return remaining


class EntriesPaymentProvider:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def has_entries_remaining(self, user_id: int) -> bool:
        async with self._session_factory() as session:
            return await EntriesService.games_remaining(session, user_id) > 0

    async def deduct_entry(self, user_id: int) -> int | None:
        async with self._session_factory.begin() as session:
            return await EntriesService.deduct_entry(session, user_id)

    async def refund_entry(self, user_id: int) -> None:
        async with self._session_factory.begin() as session:
            await EntriesService.grant_entries(session, user_id=user_id, amount=1, reason="session_not_created")
