from __future__ import annotations

from collections.abc import Sequence
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.questions import Question


class QuestionsRepo:
    @staticmethod
    async def get_by_id(session: AsyncSession, question_id: int) -> Question | None:
        return await session.get(Question, question_id)

    @staticmethod
    async def pick_random(
        session: AsyncSession,
        *,
        game_mode: str,
        min_difficulty: int | None,
        max_difficulty: int | None,
        exclude_ids: Sequence[int],
        tournament_id: UUID | None = None,
    ) -> Question | None:
        stmt = select(Question).where(Question.is_active.is_(True), Question.game_mode == game_mode)
        if min_difficulty is not None:
            stmt = stmt.where(Question.difficulty >= min_difficulty)
        if max_difficulty is not None:
            stmt = stmt.where(Question.difficulty <= max_difficulty)
        if tournament_id is not None:
            stmt = stmt.where(Question.tournament_id == tournament_id)
        if exclude_ids:
            stmt = stmt.where(Question.id.not_in(tuple(exclude_ids)))
        stmt = stmt.order_by(func.random()).limit(1)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def record_answer(session: AsyncSession, *, question_id: int, was_correct: bool) -> int:
        values: dict[str, object] = {"times_asked": Question.times_asked + 1}
        if was_correct:
            values["times_correct"] = Question.times_correct + 1
        stmt = update(Question).where(Question.id == question_id).values(values)
        result = await session.execute(stmt)
        return result.rowcount or 0
