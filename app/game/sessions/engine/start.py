from __future__ import annotations

import secrets
from uuid import UUID, uuid4

import structlog

from app.game.sessions.engine import messages
from app.game.sessions.engine.cache import (
    clear_ready_flag,
    get_ready_flag,
    purge_session_cache,
    set_ready_flag,
    write_session_shadow,
)
from app.game.sessions.engine.deps import EngineDeps, user_lock_key
from app.game.sessions.engine.questions import schedule_next_question
from app.game.sessions.errors import (
    ActiveSessionExistsError,
    IneligibleToStartError,
    NoEntriesRemainingError,
    TournamentNotFoundError,
    TournamentNotJoinedError,
    TournamentPaymentRequiredError,
    TournamentTokensExhaustedError,
)
from app.game.sessions.timers import session_prefix
from app.game.sessions.types import (
    GameKind,
    GameSessionState,
    Player,
    SessionStatus,
    TournamentEntry,
)

logger = structlog.get_logger("app.game.sessions.engine.start")


def new_session_key() -> str:
    return secrets.token_hex(16)


async def _check_tournament(deps: EngineDeps, player: Player, tournament_id: UUID | None) -> TournamentEntry:
    if tournament_id is None:
        raise TournamentNotFoundError
    entry = await deps.tournaments.get_status(player.user_id, tournament_id)
    if not entry.exists:
        raise TournamentNotFoundError
    if not entry.joined:
        raise TournamentNotJoinedError
    if not entry.payment_complete:
        raise TournamentPaymentRequiredError
    if entry.uses_tokens and entry.tokens_remaining <= 0:
        raise TournamentTokensExhaustedError
    return entry


async def _consume_entry(
    deps: EngineDeps,
    player: Player,
    game_kind: GameKind,
    entry: TournamentEntry | None,
    tournament_id: UUID | None,
) -> bool:
    if game_kind == GameKind.REGULAR and deps.regular_games_paid:
        remaining = await deps.payments.deduct_entry(player.user_id)
        if remaining is None:
            raise NoEntriesRemainingError
        logger.info("game_entry_consumed", user_id=player.user_id, games_remaining=remaining)
        return True
    if game_kind == GameKind.TOURNAMENT and entry is not None and entry.uses_tokens and tournament_id:
        if not await deps.tournaments.deduct_token(player.user_id, tournament_id):
            raise TournamentTokensExhaustedError
        logger.info("tournament_token_consumed", user_id=player.user_id, tournament_id=str(tournament_id))
        return True
    return False


async def _refund_entry(
    deps: EngineDeps,
    player: Player,
    game_kind: GameKind,
    tournament_id: UUID | None,
) -> None:
    try:
        if game_kind == GameKind.TOURNAMENT and tournament_id is not None:
            await deps.tournaments.refund_token(player.user_id, tournament_id)
        else:
            await deps.payments.refund_entry(player.user_id)
    except Exception:
        logger.exception("game_entry_refund_failed", user_id=player.user_id, game_kind=game_kind.value)
        return
    logger.info("game_entry_refunded", user_id=player.user_id, game_kind=game_kind.value)


async def _record_streak(deps: EngineDeps, state: GameSessionState) -> None:
    if deps.streaks is None or state.game_kind == GameKind.PRACTICE:
        return
    try:
        await deps.streaks.record_game(state.user_id, game_kind=state.game_kind, now_utc=state.started_at)
    except Exception:
        logger.exception("streak_update_failed", user_id=state.user_id, session_key=state.session_key)


async def start_game(
    deps: EngineDeps,
    player: Player,
    game_kind: GameKind,
    *,
    tournament_id: UUID | None = None,
) -> GameSessionState:
    async with deps.locks.hold(user_lock_key(player.user_id)):
        try:
            if game_kind == GameKind.REGULAR and deps.regular_games_paid:
                if not await deps.payments.has_entries_remaining(player.user_id):
                    raise NoEntriesRemainingError
            entry = None
            if game_kind == GameKind.TOURNAMENT:
                entry = await _check_tournament(deps, player, tournament_id)
            if await deps.store.get_active_for_user(player.user_id) is not None:
                raise ActiveSessionExistsError

            entry_consumed = await _consume_entry(deps, player, game_kind, entry, tournament_id)
            state = GameSessionState(
                session_id=uuid4(),
                session_key=new_session_key(),
                user_id=player.user_id,
                game_kind=game_kind,
                channel=player.channel,
                recipient=player.address,
                status=SessionStatus.ACTIVE,
                current_question=1,
                current_score=0,
                started_at=deps.clock(),
                tournament_id=tournament_id if game_kind == GameKind.TOURNAMENT else None,
                entry_consumed=entry_consumed,
            )
            try:
                state = await deps.store.create_active(state)
            except ActiveSessionExistsError:
                if entry_consumed:
                    await _refund_entry(deps, player, game_kind, tournament_id)
                raise
        except IneligibleToStartError as exc:
            logger.info(
                "game_start_rejected",
                user_id=player.user_id,
                game_kind=game_kind.value,
                reason=exc.reason,
            )
            await deps.sender.send_message(player.channel, player.address, messages.rejection_message(exc.reason))
            raise

        await write_session_shadow(deps, state)
        await set_ready_flag(deps, player.user_id, state.session_key)
        await deps.sender.send_message(
            player.channel,
            player.address,
            messages.instructions_message(
                game_kind,
                ladder=deps.ladder,
                timeout_seconds=deps.timing.question_timeout_seconds,
                tournament_name=entry.name if entry is not None else None,
            ),
        )
        logger.info(
            "game_started",
            user_id=player.user_id,
            session_key=state.session_key,
            game_kind=game_kind.value,
            entry_consumed=entry_consumed,
        )
        await _record_streak(deps, state)
        return state


async def is_awaiting_ready(deps: EngineDeps, user_id: int) -> bool:
    return await get_ready_flag(deps, user_id) is not None


async def confirm_ready(deps: EngineDeps, player: Player) -> bool:
    """Consumes the ready flag and queues question 1; False when nothing was waiting."""
    async with deps.locks.hold(user_lock_key(player.user_id)):
        ready_session_key = await get_ready_flag(deps, player.user_id)
        if ready_session_key is None:
            return False
        await clear_ready_flag(deps, player.user_id)
        state = await deps.store.get_active_for_user(player.user_id)
        if state is None or state.session_key != ready_session_key or state.current_question_id is not None:
            logger.info("game_ready_flag_stale", user_id=player.user_id, session_key=ready_session_key)
            return False
        await deps.sender.send_message(state.channel, state.recipient, messages.READY_COUNTDOWN)
        schedule_next_question(deps, state, delay_seconds=deps.timing.ready_delay_seconds)
        logger.info("game_ready_confirmed", user_id=player.user_id, session_key=state.session_key)
        return True


async def reset_games(deps: EngineDeps, player: Player) -> int:
    async with deps.locks.hold(user_lock_key(player.user_id)):
        cancelled = await deps.store.cancel_active_for_user(player.user_id, now_utc=deps.clock())
        for stale in cancelled:
            deps.timers.cancel_prefix(session_prefix(stale.session_key))
            await purge_session_cache(deps.expiry, session_key=stale.session_key, user_id=stale.user_id)
        await clear_ready_flag(deps, player.user_id)
        await deps.sender.send_message(player.channel, player.address, messages.RESET_DONE)
        logger.info("game_reset", user_id=player.user_id, cancelled_sessions=len(cancelled))
        return len(cancelled)
