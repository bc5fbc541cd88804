from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from uuid import UUID

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.db.models.questions import Question
from app.db.repo.questions_repo import QuestionsRepo
from app.game.questions.types import OptionLetter, TriviaQuestion
from app.game.sessions.errors import TransientStoreFailure
from app.game.sessions.types import GameKind

logger = structlog.get_logger("app.game.questions.bank")

DIFFICULTY_BANDS: tuple[tuple[range, tuple[int, int]], ...] = (
    (range(1, 6), (1, 7)),
    (range(6, 11), (6, 12)),
    (range(11, 16), (11, 15)),
)


@dataclass(frozen=True, slots=True)
class QuestionQuery:
    game_mode: str
    min_difficulty: int | None
    max_difficulty: int | None
    tournament_id: UUID | None = None


def difficulty_band(question_number: int) -> tuple[int, int]:
    for rungs, band in DIFFICULTY_BANDS:
        if question_number in rungs:
            return band
    return DIFFICULTY_BANDS[-1][1]


def selection_plan(
    question_number: int,
    *,
    game_kind: GameKind,
    tournament_id: UUID | None = None,
) -> list[QuestionQuery]:
    """Ordered lookups: difficulty band first, then any difficulty, then the regular pool."""
    low, high = difficulty_band(question_number)
    plan: list[QuestionQuery] = []
    if game_kind == GameKind.TOURNAMENT and tournament_id is not None:
        plan.append(QuestionQuery(GameKind.TOURNAMENT.value, low, high, tournament_id))
        plan.append(QuestionQuery(GameKind.TOURNAMENT.value, None, None, tournament_id))
    elif game_kind != GameKind.REGULAR:
        plan.append(QuestionQuery(game_kind.value, low, high))
        plan.append(QuestionQuery(game_kind.value, None, None))
    plan.append(QuestionQuery(GameKind.REGULAR.value, low, high))
    plan.append(QuestionQuery(GameKind.REGULAR.value, None, None))
    return plan


def to_trivia_question(row: Question) -> TriviaQuestion:
    return TriviaQuestion(
        question_id=row.id,
        text=row.question_text,
        options=(row.option_a, row.option_b, row.option_c, row.option_d),
        correct_option=OptionLetter(row.correct_answer.strip().upper()),
        difficulty=row.difficulty,
        fun_fact=row.fun_fact,
        category=row.category,
        tournament_id=row.tournament_id,
    )


class QuestionBank:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get_question_by_difficulty(
        self,
        question_number: int,
        *,
        exclude_ids: Sequence[int],
        game_kind: GameKind,
        tournament_id: UUID | None = None,
    ) -> TriviaQuestion | None:
        plan = selection_plan(question_number, game_kind=game_kind, tournament_id=tournament_id)
        try:
            async with self._session_factory() as session:
                for fallback_step, query in enumerate(plan):
                    row = await QuestionsRepo.pick_random(
                        session,
                        game_mode=query.game_mode,
                        min_difficulty=query.min_difficulty,
                        max_difficulty=query.max_difficulty,
                        exclude_ids=exclude_ids,
                        tournament_id=query.tournament_id,
                    )
                    if row is None:
                        continue
                    if fallback_step:
                        logger.info(
                            "question_selection_fallback",
                            question_number=question_number,
                            game_kind=game_kind.value,
                            fallback_step=fallback_step,
                        )
                    return to_trivia_question(row)
        except SQLAlchemyError as exc:
            raise TransientStoreFailure("get_question_by_difficulty") from exc
        return None

    async def get_question_by_id(self, question_id: int) -> TriviaQuestion | None:
        try:
            async with self._session_factory() as session:
                row = await QuestionsRepo.get_by_id(session, question_id)
        except SQLAlchemyError as exc:
            raise TransientStoreFailure("get_question_by_id") from exc
        return None if row is None else to_trivia_question(row)

    async def update_stats(self, question_id: int, *, was_correct: bool) -> None:
        async with self._session_factory.begin() as session:
            await QuestionsRepo.record_answer(session, question_id=question_id, was_correct=was_correct)
