from __future__ import annotations

from uuid import UUID

import structlog

from app.game.sessions.engine import messages
from app.game.sessions.engine.cache import append_asked_id, read_asked_ids, write_session_shadow
from app.game.sessions.engine.deps import EngineDeps, user_lock_key
from app.game.sessions.engine.resolution import arm_question_timer
from app.game.sessions.errors import ContentExhaustedError, SessionNotActiveError
from app.game.sessions.timers import TimerKind, continuation_key, timeout_key
from app.game.sessions.types import GameSessionState

logger = structlog.get_logger("app.game.sessions.engine.questions")


async def send_question(deps: EngineDeps, state: GameSessionState) -> GameSessionState:
    """Serves the question for ``state.current_question`` and arms its countdown.

    The caller must hold the user's lock.
    """
    question_number = state.current_question
    deps.timers.cancel(timeout_key(state.session_key, question_number))

    asked_ids = await read_asked_ids(deps, state.session_key)
    question = await deps.questions.get_question_by_difficulty(
        question_number,
        exclude_ids=asked_ids,
        game_kind=state.game_kind,
        tournament_id=state.tournament_id,
    )
    if question is None:
        logger.error(
            "question_content_exhausted",
            session_key=state.session_key,
            question_number=question_number,
            game_kind=state.game_kind.value,
            asked_count=len(asked_ids),
        )
        await deps.sender.send_message(state.channel, state.recipient, messages.CONTENT_EXHAUSTED)
        raise ContentExhaustedError(f"no question available for rung {question_number}")

    await append_asked_id(deps, state.session_key, asked_ids, question.question_id)
    state.current_question_id = question.question_id
    if not await deps.store.update_progress(state):
        raise SessionNotActiveError(state.session_key)
    await write_session_shadow(deps, state)

    await deps.sender.send_message(
        state.channel,
        state.recipient,
        messages.question_message(
            state,
            question,
            ladder=deps.ladder,
            timeout_seconds=deps.timing.question_timeout_seconds,
        ),
    )
    await arm_question_timer(deps, state, question.question_id)
    logger.info(
        "question_sent",
        session_key=state.session_key,
        user_id=state.user_id,
        question_number=question_number,
        question_id=question.question_id,
    )
    return state


async def _continue_with_question(
    deps: EngineDeps,
    *,
    user_id: int,
    session_id: UUID,
    expected_question: int,
) -> None:
    async with deps.locks.hold(user_lock_key(user_id)):
        state = await deps.store.get_active_for_user(user_id)
        if (
            state is None
            or state.session_id != session_id
            or state.current_question != expected_question
            or state.current_question_id is not None
        ):
            logger.info(
                "question_continuation_dropped",
                user_id=user_id,
                session_id=str(session_id),
                expected_question=expected_question,
            )
            return
        try:
            await send_question(deps, state)
        except (ContentExhaustedError, SessionNotActiveError):
            raise
        except Exception:
            await _apologize(deps, state)
            raise


async def _apologize(deps: EngineDeps, state: GameSessionState) -> None:
    try:
        await deps.sender.send_message(state.channel, state.recipient, messages.GENERIC_APOLOGY)
    except Exception:
        logger.warning("apology_send_failed", session_key=state.session_key)


def schedule_next_question(deps: EngineDeps, state: GameSessionState, *, delay_seconds: float) -> None:
    """Queues a cancellable pacing continuation that serves the current rung."""
    session_id = state.session_id
    user_id = state.user_id
    expected_question = state.current_question

    async def fire() -> None:
        await _continue_with_question(
            deps,
            user_id=user_id,
            session_id=session_id,
            expected_question=expected_question,
        )

    deps.timers.schedule(
        continuation_key(state.session_key),
        session_key=state.session_key,
        kind=TimerKind.CONTINUATION,
        delay_seconds=delay_seconds,
        callback=fire,
        question_number=expected_question,
    )


def has_pending_continuation(deps: EngineDeps, session_key: str) -> bool:
    return continuation_key(session_key) in deps.timers
