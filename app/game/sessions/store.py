from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime
from uuid import UUID

import structlog
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.db.models.game_sessions import GameSession
from app.db.repo.game_sessions_repo import GameSessionsRepo
from app.db.repo.prize_payouts_repo import PrizePayoutsRepo
from app.db.repo.users_repo import UsersRepo
from app.game.sessions.errors import ActiveSessionExistsError, TransientStoreFailure
from app.game.sessions.types import (
    Channel,
    CompletionRecord,
    GameKind,
    GameSessionState,
    LeaderboardEntry,
    Lifeline,
    SessionStatus,
    StaleSession,
)

logger = structlog.get_logger("app.game.sessions.store")

ACTIVE_SESSION_CONSTRAINT = "uq_game_sessions_user_active"

_LIFELINE_COLUMNS = {
    Lifeline.ELIMINATE_TWO: "lifeline_eliminate_two_used",
    Lifeline.REPLACE_QUESTION: "lifeline_replace_question_used",
}


def _state_from_row(row: GameSession) -> GameSessionState:
    return GameSessionState(
        session_id=row.id,
        session_key=row.session_key,
        user_id=row.user_id,
        game_kind=GameKind(row.game_kind),
        channel=Channel(row.channel),
        recipient=row.recipient,
        status=SessionStatus(row.status),
        current_question=row.current_question,
        current_score=row.current_score,
        started_at=row.started_at,
        current_question_id=row.current_question_id,
        eliminate_two_used=row.lifeline_eliminate_two_used,
        replace_question_used=row.lifeline_replace_question_used,
        tournament_id=row.tournament_id,
        entry_consumed=row.entry_consumed,
        final_score=row.final_score,
        completed_at=row.completed_at,
        questions_answered=row.questions_answered,
    )


def _stale(rows: list[tuple[UUID, str, int]]) -> list[StaleSession]:
    return [
        StaleSession(session_id=session_id, session_key=session_key, user_id=user_id)
        for session_id, session_key, user_id in rows
    ]


class SqlSessionStore:
    """Session persistence over SQLAlchemy; every call runs in its own transaction."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    @asynccontextmanager
    async def _transaction(self, operation: str) -> AsyncIterator[AsyncSession]:
        try:
            async with self._session_factory.begin() as session:
                yield session
        except (ActiveSessionExistsError, IntegrityError):
            raise
        except SQLAlchemyError as exc:
            logger.warning("session_store_failed", operation=operation, error_type=type(exc).__name__)
            raise TransientStoreFailure(operation) from exc

    async def get_by_id(self, session_id: UUID) -> GameSessionState | None:
        async with self._transaction("get_by_id") as session:
            row = await GameSessionsRepo.get_by_id(session, session_id)
            return None if row is None else _state_from_row(row)

    async def get_active_for_user(self, user_id: int) -> GameSessionState | None:
        async with self._transaction("get_active_for_user") as session:
            row = await GameSessionsRepo.get_active_for_user(session, user_id)
            return None if row is None else _state_from_row(row)

    async def create_active(self, state: GameSessionState) -> GameSessionState:
        try:
            async with self._transaction("create_active") as session:
                row = await GameSessionsRepo.create(
                    session,
                    game_session=GameSession(
                        id=state.session_id,
                        session_key=state.session_key,
                        user_id=state.user_id,
                        game_kind=state.game_kind.value,
                        tournament_id=state.tournament_id,
                        entry_consumed=state.entry_consumed,
                        channel=state.channel.value,
                        recipient=state.recipient,
                        status=SessionStatus.ACTIVE.value,
                        current_question=state.current_question,
                        current_score=state.current_score,
                        current_question_id=None,
                        lifeline_eliminate_two_used=False,
                        lifeline_replace_question_used=False,
                        started_at=state.started_at,
                        questions_answered=0,
                    ),
                )
                return _state_from_row(row)
        except IntegrityError as exc:
            if ACTIVE_SESSION_CONSTRAINT in str(exc.orig):
                raise ActiveSessionExistsError from exc
            raise TransientStoreFailure("create_active") from exc

    async def update_progress(self, state: GameSessionState) -> bool:
        async with self._transaction("update_progress") as session:
            return await GameSessionsRepo.update_progress(
                session,
                session_id=state.session_id,
                current_question=state.current_question,
                current_score=state.current_score,
                current_question_id=state.current_question_id,
                questions_answered=state.questions_answered,
            )

    async def mark_lifeline_used(self, session_id: UUID, lifeline: Lifeline) -> bool:
        async with self._transaction("mark_lifeline_used") as session:
            return await GameSessionsRepo.mark_lifeline_used(
                session,
                session_id=session_id,
                column_name=_LIFELINE_COLUMNS[lifeline],
            )

    async def finalize(self, record: CompletionRecord) -> bool:
        async with self._transaction("finalize") as session:
            closed = await GameSessionsRepo.close_if_active(
                session,
                session_id=record.session_id,
                status=record.status.value,
                final_score=record.final_score,
                current_score=record.final_score,
                questions_answered=record.questions_answered,
                completed_at=record.completed_at,
            )
            if not closed:
                return False
            await UsersRepo.apply_game_result(
                session,
                user_id=record.user_id,
                winnings=record.final_score,
                question_reached=record.question_reached,
                played_at=record.completed_at,
            )
            if record.write_payout and record.final_score > 0:
                await PrizePayoutsRepo.create_pending(
                    session,
                    user_id=record.user_id,
                    session_id=record.session_id,
                    amount=record.final_score,
                    created_at=record.completed_at,
                )
            return True

    async def cancel_active_for_user(self, user_id: int, *, now_utc: datetime) -> list[StaleSession]:
        async with self._transaction("cancel_active_for_user") as session:
            rows = await GameSessionsRepo.cancel_active_for_user(session, user_id=user_id, now_utc=now_utc)
            return _stale(rows)

    async def cancel_started_before(self, cutoff_utc: datetime, *, now_utc: datetime) -> list[StaleSession]:
        async with self._transaction("cancel_started_before") as session:
            rows = await GameSessionsRepo.cancel_started_before(
                session,
                cutoff_utc=cutoff_utc,
                now_utc=now_utc,
            )
            return _stale(rows)

    async def daily_leaderboard(self, *, since_utc: datetime, limit: int) -> list[LeaderboardEntry]:
        async with self._transaction("daily_leaderboard") as session:
            rows = await PrizePayoutsRepo.top_since(session, since_utc=since_utc, limit=limit)
            return [
                LeaderboardEntry(display_name=full_name or "Player", amount=amount)
                for full_name, amount in rows
            ]
