from __future__ import annotations

from uuid import UUID

import structlog

from app.game.questions.types import TriviaQuestion
from app.game.sessions.engine import messages
from app.game.sessions.engine.cache import (
    TimeoutMarker,
    clear_all_markers,
    purge_session_cache,
    read_marker,
    write_marker,
)
from app.game.sessions.engine.deps import EngineDeps, user_lock_key
from app.game.sessions.timers import TimerKind, session_prefix, timeout_key
from app.game.sessions.types import (
    CompletionRecord,
    GameKind,
    GameOutcome,
    GameSessionState,
    SessionStatus,
)

logger = structlog.get_logger("app.game.sessions.engine.resolution")


def schedule_question_timer(
    deps: EngineDeps,
    *,
    session_key: str,
    session_id: UUID,
    user_id: int,
    question_number: int,
    question_id: int,
    delay_seconds: float,
) -> None:
    async def fire() -> None:
        await on_question_timer(
            deps,
            session_key=session_key,
            session_id=session_id,
            user_id=user_id,
            question_number=question_number,
            question_id=question_id,
        )

    deps.timers.schedule(
        timeout_key(session_key, question_number),
        session_key=session_key,
        kind=TimerKind.TIMEOUT,
        delay_seconds=delay_seconds,
        callback=fire,
        question_number=question_number,
    )


async def arm_question_timer(deps: EngineDeps, state: GameSessionState, question_id: int) -> TimeoutMarker:
    timeout = deps.timing.question_timeout_seconds
    marker = TimeoutMarker(
        deadline_ms=deps.now_ms() + int(timeout * 1000),
        session_id=state.session_id,
        user_id=state.user_id,
        question_id=question_id,
    )
    await write_marker(deps, state.session_key, state.current_question, marker)
    schedule_question_timer(
        deps,
        session_key=state.session_key,
        session_id=state.session_id,
        user_id=state.user_id,
        question_number=state.current_question,
        question_id=question_id,
        delay_seconds=timeout,
    )
    return marker


async def rearm_from_marker(
    deps: EngineDeps,
    *,
    session_key: str,
    question_number: int,
    marker: TimeoutMarker,
    restore_marker: bool = False,
) -> float:
    """Re-creates the local handle for a marker and returns the remaining delay."""
    if restore_marker:
        await write_marker(deps, session_key, question_number, marker)
    remaining = max(0.0, (marker.deadline_ms - deps.now_ms()) / 1000)
    schedule_question_timer(
        deps,
        session_key=session_key,
        session_id=marker.session_id,
        user_id=marker.user_id,
        question_number=question_number,
        question_id=marker.question_id,
        delay_seconds=remaining,
    )
    return remaining


async def on_question_timer(
    deps: EngineDeps,
    *,
    session_key: str,
    session_id: UUID,
    user_id: int,
    question_number: int,
    question_id: int,
) -> None:
    async with deps.locks.hold(user_lock_key(user_id)):
        marker = await read_marker(deps, session_key, question_number)
        if marker is None or marker.question_id != question_id:
            logger.debug(
                "question_timer_stale",
                session_key=session_key,
                question_number=question_number,
            )
            return
        state = await deps.store.get_by_id(session_id)
        if (
            state is None
            or not state.is_active
            or state.current_question != question_number
            or state.current_question_id != question_id
        ):
            logger.debug(
                "question_timer_superseded",
                session_key=session_key,
                question_number=question_number,
            )
            return
        logger.info(
            "question_timed_out",
            session_key=session_key,
            user_id=user_id,
            question_number=question_number,
        )
        await resolve_timeout(deps, state)


async def resolve_wrong_answer(
    deps: EngineDeps,
    state: GameSessionState,
    question: TriviaQuestion,
) -> bool:
    state.current_score = deps.ladder.guaranteed_payout(state.current_question)
    return await complete_game(deps, state, GameOutcome.LOST, question=question)


async def resolve_timeout(deps: EngineDeps, state: GameSessionState) -> bool:
    state.current_score = deps.ladder.guaranteed_payout(state.current_question)
    return await complete_game(deps, state, GameOutcome.TIMED_OUT)


def _terminal_message(
    deps: EngineDeps,
    state: GameSessionState,
    outcome: GameOutcome,
    question: TriviaQuestion | None,
) -> str:
    if outcome == GameOutcome.GRAND_PRIZE:
        return messages.grand_prize_message(state, ladder=deps.ladder)
    if outcome == GameOutcome.TIMED_OUT:
        return messages.timeout_message(state)
    if question is not None:
        return messages.wrong_answer_message(state, question)
    return messages.game_over_message(state)


async def _report_tournament_attempt(deps: EngineDeps, state: GameSessionState) -> None:
    if state.tournament_id is None:
        return
    try:
        await deps.tournaments.record_attempt(
            user_id=state.user_id,
            tournament_id=state.tournament_id,
            session_id=state.session_id,
            score=state.current_score,
            questions_answered=state.questions_answered,
        )
    except Exception:
        logger.exception(
            "tournament_attempt_report_failed",
            session_key=state.session_key,
            tournament_id=str(state.tournament_id),
        )


async def complete_game(
    deps: EngineDeps,
    state: GameSessionState,
    outcome: GameOutcome,
    *,
    question: TriviaQuestion | None = None,
) -> bool:
    """Closes an active session once; returns False when another path already closed it.

    The caller must hold the user's lock. Aggregates, payout, tournament
    report and the terminal message only happen for the winning caller.
    """
    deps.timers.cancel_prefix(session_prefix(state.session_key))
    await clear_all_markers(deps, state.session_key)

    completed_at = deps.clock()
    record = CompletionRecord(
        session_id=state.session_id,
        user_id=state.user_id,
        status=SessionStatus.COMPLETED,
        final_score=state.current_score,
        question_reached=min(state.current_question, deps.ladder.total_rungs),
        questions_answered=state.questions_answered,
        write_payout=state.game_kind != GameKind.PRACTICE,
        completed_at=completed_at,
    )
    if not await deps.store.finalize(record):
        logger.info(
            "game_completion_skipped",
            session_key=state.session_key,
            user_id=state.user_id,
            outcome=outcome.value,
        )
        return False

    state.status = SessionStatus.COMPLETED
    state.final_score = state.current_score
    state.completed_at = completed_at

    if state.game_kind == GameKind.TOURNAMENT:
        await _report_tournament_attempt(deps, state)
    await purge_session_cache(deps.expiry, session_key=state.session_key, user_id=state.user_id)
    await deps.sender.send_message(
        state.channel,
        state.recipient,
        _terminal_message(deps, state, outcome, question),
    )
    logger.info(
        "game_completed",
        session_key=state.session_key,
        user_id=state.user_id,
        game_kind=state.game_kind.value,
        outcome=outcome.value,
        final_score=state.current_score,
        question_reached=record.question_reached,
    )
    return True
