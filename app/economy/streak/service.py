from __future__ import annotations

from dataclasses import replace
from datetime import datetime

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.db.models.streak_state import StreakState
from app.db.repo.streak_repo import StreakRepo
from app.economy.entries.service import EntriesService
from app.economy.streak.rules import record_activity, reward_for_streak
from app.economy.streak.time import lagos_local_date
from app.economy.streak.types import StreakActivityResult, StreakChange, StreakSnapshot
from app.game.sessions.types import GameKind

logger = structlog.get_logger("app.economy.streak")


class StreakService:
    @staticmethod
    def _snapshot_from_model(state: StreakState) -> StreakSnapshot:
        return StreakSnapshot(
            current_streak=state.current_streak,
            best_streak=state.best_streak,
            last_activity_local_date=state.last_activity_local_date,
            badge=state.badge,
            last_reward_streak=state.last_reward_streak,
            last_reward_at=state.last_reward_at,
        )

    @staticmethod
    def _apply_snapshot_to_model(state: StreakState, snapshot: StreakSnapshot, now_utc: datetime) -> None:
        state.current_streak = snapshot.current_streak
        state.best_streak = snapshot.best_streak
        state.last_activity_local_date = snapshot.last_activity_local_date
        state.badge = snapshot.badge
        state.last_reward_streak = snapshot.last_reward_streak
        state.last_reward_at = snapshot.last_reward_at
        state.updated_at = now_utc
        state.version += 1

    @staticmethod
    async def _get_or_create_state_for_update(
        session: AsyncSession,
        user_id: int,
        now_utc: datetime,
    ) -> StreakState:
        state = await StreakRepo.get_by_user_id_for_update(session, user_id)
        if state is not None:
            return state
        return await StreakRepo.create_default_state(session, user_id=user_id, now_utc=now_utc)

    @staticmethod
    async def record_activity(
        session: AsyncSession,
        *,
        user_id: int,
        activity_at_utc: datetime,
    ) -> StreakActivityResult:
        state = await StreakService._get_or_create_state_for_update(session, user_id, activity_at_utc)
        snapshot, change = record_activity(
            StreakService._snapshot_from_model(state),
            local_date=lagos_local_date(activity_at_utc),
        )
        if change == StreakChange.ALREADY_COUNTED:
            return StreakActivityResult(
                change=change,
                current_streak=snapshot.current_streak,
                best_streak=snapshot.best_streak,
                badge=snapshot.badge,
            )

        reward_games = reward_for_streak(snapshot, now_utc=activity_at_utc)
        if reward_games:
            await EntriesService.grant_entries(
                session,
                user_id=user_id,
                amount=reward_games,
                reason=f"streak_{snapshot.current_streak}",
            )
            snapshot = replace(
                snapshot,
                last_reward_streak=snapshot.current_streak,
                last_reward_at=activity_at_utc,
            )

        StreakService._apply_snapshot_to_model(state, snapshot, activity_at_utc)
        await session.flush()
        logger.info(
            "streak_updated",
            user_id=user_id,
            change=change.value,
            current_streak=snapshot.current_streak,
            reward_games=reward_games,
        )
        return StreakActivityResult(
            change=change,
            current_streak=snapshot.current_streak,
            best_streak=snapshot.best_streak,
            badge=snapshot.badge,
            reward_games=reward_games,
        )


class DbStreakRecorder:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def record_game(self, user_id: int, *, game_kind: GameKind, now_utc: datetime) -> None:
        if game_kind == GameKind.PRACTICE:
            return
        async with self._session_factory.begin() as session:
            await StreakService.record_activity(session, user_id=user_id, activity_at_utc=now_utc)
