from __future__ import annotations

from collections.abc import Callable, Sequence

import structlog

from app.game.questions.types import OPTION_ORDER, OptionLetter
from app.game.sessions.engine import messages
from app.game.sessions.engine.cache import clear_marker, read_marker, write_session_shadow
from app.game.sessions.engine.deps import EngineDeps, user_lock_key
from app.game.sessions.engine.questions import schedule_next_question
from app.game.sessions.engine.resolution import rearm_from_marker, resolve_timeout
from app.game.sessions.errors import LifelineAlreadyUsedError, SessionIntegrityError, SessionNotActiveError
from app.game.sessions.timers import timeout_key
from app.game.sessions.types import GameSessionState, Lifeline, Player

logger = structlog.get_logger("app.game.sessions.engine.lifelines")

_LABELS = {
    Lifeline.ELIMINATE_TWO: "50:50",
    Lifeline.REPLACE_QUESTION: "Skip",
}


def pick_remaining_options(
    correct: OptionLetter,
    choose_wrong: Callable[[Sequence[OptionLetter]], OptionLetter],
) -> list[OptionLetter]:
    """Correct option plus one random wrong option, in letter order."""
    wrong = [letter for letter in OPTION_ORDER if letter != correct]
    kept = choose_wrong(wrong)
    return sorted({correct, kept}, key=OPTION_ORDER.index)


async def _reject_used(deps: EngineDeps, state: GameSessionState, lifeline: Lifeline) -> None:
    logger.info("lifeline_rejected_already_used", session_key=state.session_key, lifeline=lifeline.value)
    await deps.sender.send_message(
        state.channel,
        state.recipient,
        messages.lifeline_already_used_message(_LABELS[lifeline]),
    )
    raise LifelineAlreadyUsedError(lifeline.value)


async def use_lifeline(deps: EngineDeps, player: Player, lifeline: Lifeline) -> GameSessionState:
    async with deps.locks.hold(user_lock_key(player.user_id)):
        state = await deps.store.get_active_for_user(player.user_id)
        if state is None:
            await deps.sender.send_message(player.channel, player.address, messages.NO_ACTIVE_GAME)
            raise SessionNotActiveError(str(player.user_id))
        if state.lifeline_used(lifeline):
            await _reject_used(deps, state, lifeline)
        if state.current_question_id is None:
            await deps.sender.send_message(state.channel, state.recipient, messages.NEXT_QUESTION_PENDING)
            raise SessionIntegrityError(state.session_key)

        marker = await read_marker(deps, state.session_key, state.current_question)
        if marker is not None and marker.deadline_ms <= deps.now_ms():
            logger.info(
                "lifeline_after_deadline",
                session_key=state.session_key,
                lifeline=lifeline.value,
                question_number=state.current_question,
            )
            await resolve_timeout(deps, state)
            return state

        if lifeline == Lifeline.ELIMINATE_TWO:
            await _eliminate_two(deps, state)
        else:
            await _replace_question(deps, state)
        return state


async def _eliminate_two(deps: EngineDeps, state: GameSessionState) -> None:
    if not await deps.store.mark_lifeline_used(state.session_id, Lifeline.ELIMINATE_TWO):
        await _reject_used(deps, state, Lifeline.ELIMINATE_TWO)
    state.eliminate_two_used = True
    await write_session_shadow(deps, state)

    question = await deps.questions.get_question_by_id(state.current_question_id)
    if question is None:
        await deps.sender.send_message(state.channel, state.recipient, messages.SESSION_INTEGRITY)
        raise SessionIntegrityError(state.session_key)

    remaining = pick_remaining_options(question.correct_option, deps.rng.choice)
    await deps.sender.send_message(
        state.channel,
        state.recipient,
        messages.eliminate_two_message(state, question, remaining, ladder=deps.ladder),
    )
    logger.info(
        "lifeline_used",
        session_key=state.session_key,
        lifeline=Lifeline.ELIMINATE_TWO.value,
        question_number=state.current_question,
    )


async def _replace_question(deps: EngineDeps, state: GameSessionState) -> None:
    question_number = state.current_question
    marker = await read_marker(deps, state.session_key, question_number)
    deps.timers.cancel(timeout_key(state.session_key, question_number))
    await clear_marker(deps, state.session_key, question_number)

    if not await deps.store.mark_lifeline_used(state.session_id, Lifeline.REPLACE_QUESTION):
        if marker is not None:
            await rearm_from_marker(
                deps,
                session_key=state.session_key,
                question_number=question_number,
                marker=marker,
                restore_marker=True,
            )
        await _reject_used(deps, state, Lifeline.REPLACE_QUESTION)

    state.replace_question_used = True
    state.current_question_id = None
    await deps.store.update_progress(state)
    await write_session_shadow(deps, state)
    await deps.sender.send_message(state.channel, state.recipient, messages.replace_question_message())
    schedule_next_question(deps, state, delay_seconds=deps.timing.next_question_delay_seconds)
    logger.info(
        "lifeline_used",
        session_key=state.session_key,
        lifeline=Lifeline.REPLACE_QUESTION.value,
        question_number=question_number,
    )
