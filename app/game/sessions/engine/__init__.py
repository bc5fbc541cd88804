from __future__ import annotations

from datetime import datetime, time, timezone
from uuid import UUID
from zoneinfo import ZoneInfo

from app.game.sessions.engine import messages
from app.game.sessions.engine.answers import AnswerResult, AnswerStatus, submit_answer
from app.game.sessions.engine.deps import EngineDeps, GameTiming, user_lock_key, utc_now
from app.game.sessions.engine.lifelines import use_lifeline
from app.game.sessions.engine.questions import send_question
from app.game.sessions.engine.recovery import recover_timers
from app.game.sessions.engine.resolution import complete_game, on_question_timer
from app.game.sessions.engine.start import confirm_ready, is_awaiting_ready, reset_games, start_game
from app.game.sessions.timers import TimerRegistry
from app.game.sessions.types import (
    GameKind,
    GameOutcome,
    GameSessionState,
    LeaderboardEntry,
    Lifeline,
    Player,
)

LEADERBOARD_TIMEZONE = "Africa/Lagos"


def local_day_start_utc(now_utc: datetime, tz_name: str = LEADERBOARD_TIMEZONE) -> datetime:
    local_now = now_utc.astimezone(ZoneInfo(tz_name))
    local_midnight = datetime.combine(local_now.date(), time.min, tzinfo=local_now.tzinfo)
    return local_midnight.astimezone(timezone.utc)


class GameSessionEngine:
    """Entry point for one process: every public call is serialized per user."""

    def __init__(self, deps: EngineDeps) -> None:
        self.deps = deps

    @property
    def timers(self) -> TimerRegistry:
        return self.deps.timers

    async def start(
        self,
        player: Player,
        game_kind: GameKind = GameKind.REGULAR,
        *,
        tournament_id: UUID | None = None,
    ) -> GameSessionState:
        return await start_game(self.deps, player, game_kind, tournament_id=tournament_id)

    async def confirm_ready(self, player: Player) -> bool:
        return await confirm_ready(self.deps, player)

    async def is_awaiting_ready(self, user_id: int) -> bool:
        return await is_awaiting_ready(self.deps, user_id)

    async def get_active_session(self, user_id: int) -> GameSessionState | None:
        return await self.deps.store.get_active_for_user(user_id)

    async def send_question(self, state: GameSessionState) -> GameSessionState:
        async with self.deps.locks.hold(user_lock_key(state.user_id)):
            return await send_question(self.deps, state)

    async def answer(self, player: Player, option: str) -> AnswerResult:
        return await submit_answer(self.deps, player, option)

    async def use_lifeline(self, player: Player, lifeline: Lifeline) -> GameSessionState:
        return await use_lifeline(self.deps, player, lifeline)

    async def complete_game(self, state: GameSessionState, *, won_grand_prize: bool) -> bool:
        outcome = GameOutcome.GRAND_PRIZE if won_grand_prize else GameOutcome.LOST
        async with self.deps.locks.hold(user_lock_key(state.user_id)):
            return await complete_game(self.deps, state, outcome)

    async def fire_question_timer(
        self,
        *,
        session_key: str,
        session_id: UUID,
        user_id: int,
        question_number: int,
        question_id: int,
    ) -> None:
        await on_question_timer(
            self.deps,
            session_key=session_key,
            session_id=session_id,
            user_id=user_id,
            question_number=question_number,
            question_id=question_id,
        )

    async def reset(self, player: Player) -> int:
        return await reset_games(self.deps, player)

    async def recover_timers(self) -> int:
        return await recover_timers(self.deps)

    async def get_leaderboard(self, limit: int = 10) -> list[LeaderboardEntry]:
        return await self.deps.store.daily_leaderboard(
            since_utc=local_day_start_utc(self.deps.clock()),
            limit=limit,
        )

    async def send_leaderboard(self, player: Player, limit: int = 10) -> list[LeaderboardEntry]:
        entries = await self.get_leaderboard(limit)
        await self.deps.sender.send_message(player.channel, player.address, messages.leaderboard_message(entries))
        return entries


__all__ = [
    "AnswerResult",
    "AnswerStatus",
    "EngineDeps",
    "GameSessionEngine",
    "GameTiming",
    "local_day_start_utc",
    "utc_now",
]
