from __future__ import annotations

from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.tournament_participants import TournamentParticipant


class TournamentParticipantsRepo:
    @staticmethod
    async def get(
        session: AsyncSession,
        *,
        tournament_id: UUID,
        user_id: int,
    ) -> TournamentParticipant | None:
        stmt = select(TournamentParticipant).where(
            TournamentParticipant.tournament_id == tournament_id,
            TournamentParticipant.user_id == user_id,
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def decrement_token(
        session: AsyncSession,
        *,
        tournament_id: UUID,
        user_id: int,
        amount: int = 1,
    ) -> int | None:
        stmt = (
            update(TournamentParticipant)
            .where(
                TournamentParticipant.tournament_id == tournament_id,
                TournamentParticipant.user_id == user_id,
                TournamentParticipant.tokens_remaining >= amount,
            )
            .values(tokens_remaining=TournamentParticipant.tokens_remaining - amount)
            .returning(TournamentParticipant.tokens_remaining)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def add_tokens(
        session: AsyncSession,
        *,
        tournament_id: UUID,
        user_id: int,
        amount: int,
    ) -> int | None:
        stmt = (
            update(TournamentParticipant)
            .where(
                TournamentParticipant.tournament_id == tournament_id,
                TournamentParticipant.user_id == user_id,
            )
            .values(tokens_remaining=TournamentParticipant.tokens_remaining + amount)
            .returning(TournamentParticipant.tokens_remaining)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def record_attempt(
        session: AsyncSession,
        *,
        tournament_id: UUID,
        user_id: int,
        score: int,
    ) -> int:
        stmt = (
            update(TournamentParticipant)
            .where(
                TournamentParticipant.tournament_id == tournament_id,
                TournamentParticipant.user_id == user_id,
            )
            .values(
                best_score=func.greatest(TournamentParticipant.best_score, score),
                total_score=TournamentParticipant.total_score + score,
                games_played=TournamentParticipant.games_played + 1,
            )
        )
        result = await session.execute(stmt)
        return result.rowcount or 0
