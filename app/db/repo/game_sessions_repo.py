from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.game_sessions import GameSession


class GameSessionsRepo:
    @staticmethod
    async def get_by_id(session: AsyncSession, session_id: UUID) -> GameSession | None:
        return await session.get(GameSession, session_id)

    @staticmethod
    async def get_active_for_user(session: AsyncSession, user_id: int) -> GameSession | None:
        stmt = (
            select(GameSession)
            .where(GameSession.user_id == user_id, GameSession.status == "ACTIVE")
            .order_by(GameSession.started_at.desc())
            .limit(1)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create(session: AsyncSession, *, game_session: GameSession) -> GameSession:
        session.add(game_session)
        await session.flush()
        return game_session

    @staticmethod
    async def update_progress(
        session: AsyncSession,
        *,
        session_id: UUID,
        current_question: int,
        current_score: int,
        current_question_id: int | None,
        questions_answered: int,
    ) -> bool:
        stmt = (
            update(GameSession)
            .where(GameSession.id == session_id, GameSession.status == "ACTIVE")
            .values(
                current_question=current_question,
                current_score=current_score,
                current_question_id=current_question_id,
                questions_answered=questions_answered,
            )
        )
        result = await session.execute(stmt)
        return bool(result.rowcount)

    @staticmethod
    async def mark_lifeline_used(
        session: AsyncSession,
        *,
        session_id: UUID,
        column_name: str,
    ) -> bool:
        column = getattr(GameSession, column_name)
        stmt = (
            update(GameSession)
            .where(
                GameSession.id == session_id,
                GameSession.status == "ACTIVE",
                column.is_(False),
            )
            .values({column_name: True})
        )
        result = await session.execute(stmt)
        return bool(result.rowcount)

    @staticmethod
    async def close_if_active(
        session: AsyncSession,
        *,
        session_id: UUID,
        status: str,
        final_score: int,
        current_score: int,
        questions_answered: int,
        completed_at: datetime,
    ) -> bool:
        stmt = (
            update(GameSession)
            .where(GameSession.id == session_id, GameSession.status == "ACTIVE")
            .values(
                status=status,
                final_score=final_score,
                current_score=current_score,
                questions_answered=questions_answered,
                completed_at=completed_at,
            )
            .returning(GameSession.id)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none() is not None

    @staticmethod
    async def cancel_active_for_user(
        session: AsyncSession,
        *,
        user_id: int,
        now_utc: datetime,
    ) -> list[tuple[UUID, str, int]]:
        stmt = (
            update(GameSession)
            .where(GameSession.user_id == user_id, GameSession.status == "ACTIVE")
            .values(status="CANCELLED", completed_at=now_utc)
            .returning(GameSession.id, GameSession.session_key, GameSession.user_id)
        )
        result = await session.execute(stmt)
        return [(row[0], row[1], row[2]) for row in result.all()]

    @staticmethod
    async def cancel_started_before(
        session: AsyncSession,
        *,
        cutoff_utc: datetime,
        now_utc: datetime,
    ) -> list[tuple[UUID, str, int]]:
        stmt = (
            update(GameSession)
            .where(GameSession.status == "ACTIVE", GameSession.started_at < cutoff_utc)
            .values(status="CANCELLED", completed_at=now_utc)
            .returning(GameSession.id, GameSession.session_key, GameSession.user_id)
        )
        result = await session.execute(stmt)
        return [(row[0], row[1], row[2]) for row in result.all()]
