from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

import structlog

from app.game.questions.types import OptionLetter, TriviaQuestion
from app.game.sessions.engine import messages
from app.game.sessions.engine.cache import clear_marker, get_ready_flag, read_marker, write_session_shadow
from app.game.sessions.engine.deps import EngineDeps, user_lock_key
from app.game.sessions.engine.questions import has_pending_continuation, schedule_next_question
from app.game.sessions.engine.resolution import complete_game, resolve_timeout, resolve_wrong_answer
from app.game.sessions.errors import InvalidAnswerOptionError, SessionIntegrityError
from app.game.sessions.timers import timeout_key
from app.game.sessions.types import GameOutcome, GameSessionState, Player

logger = structlog.get_logger("app.game.sessions.engine.answers")


class AnswerStatus(str, Enum):
    CORRECT = "CORRECT"
    WRONG = "WRONG"
    TIMED_OUT = "TIMED_OUT"
    GRAND_PRIZE = "GRAND_PRIZE"
    NO_ACTIVE_SESSION = "NO_ACTIVE_SESSION"
    NOT_READY = "NOT_READY"
    QUESTION_PENDING = "QUESTION_PENDING"


@dataclass(frozen=True, slots=True)
class AnswerResult:
    status: AnswerStatus
    question_number: int | None = None
    score: int | None = None


async def _update_stats(deps: EngineDeps, question: TriviaQuestion, *, was_correct: bool) -> None:
    try:
        await deps.questions.update_stats(question.question_id, was_correct=was_correct)
    except Exception:
        logger.exception("question_stats_update_failed", question_id=question.question_id)


async def _waiting_status(deps: EngineDeps, state: GameSessionState) -> AnswerResult:
    if await get_ready_flag(deps, state.user_id) == state.session_key:
        await deps.sender.send_message(state.channel, state.recipient, messages.READY_PROMPT)
        return AnswerResult(status=AnswerStatus.NOT_READY, question_number=state.current_question)
    if has_pending_continuation(deps, state.session_key):
        await deps.sender.send_message(state.channel, state.recipient, messages.NEXT_QUESTION_PENDING)
        return AnswerResult(status=AnswerStatus.QUESTION_PENDING, question_number=state.current_question)
    logger.warning(
        "answer_without_current_question",
        session_key=state.session_key,
        question_number=state.current_question,
    )
    await deps.sender.send_message(state.channel, state.recipient, messages.SESSION_INTEGRITY)
    raise SessionIntegrityError(state.session_key)


async def submit_answer(deps: EngineDeps, player: Player, raw_option: str) -> AnswerResult:
    option = OptionLetter.parse(raw_option)
    if option is None:
        await deps.sender.send_message(player.channel, player.address, messages.USAGE_HINT)
        raise InvalidAnswerOptionError(raw_option)

    async with deps.locks.hold(user_lock_key(player.user_id)):
        state = await deps.store.get_active_for_user(player.user_id)
        if state is None:
            await deps.sender.send_message(player.channel, player.address, messages.NO_ACTIVE_GAME)
            return AnswerResult(status=AnswerStatus.NO_ACTIVE_SESSION)

        question_number = state.current_question
        if state.current_question_id is not None:
            marker = await read_marker(deps, state.session_key, question_number)
            if marker is not None and marker.deadline_ms <= deps.now_ms():
                logger.info(
                    "answer_after_deadline",
                    session_key=state.session_key,
                    question_number=question_number,
                )
                await resolve_timeout(deps, state)
                return AnswerResult(
                    status=AnswerStatus.TIMED_OUT,
                    question_number=question_number,
                    score=state.current_score,
                )

        await clear_marker(deps, state.session_key, question_number)
        deps.timers.cancel(timeout_key(state.session_key, question_number))

        if state.current_question_id is None:
            return await _waiting_status(deps, state)

        question = await deps.questions.get_question_by_id(state.current_question_id)
        if question is None:
            logger.error(
                "current_question_missing",
                session_key=state.session_key,
                question_id=state.current_question_id,
            )
            await deps.sender.send_message(state.channel, state.recipient, messages.SESSION_INTEGRITY)
            raise SessionIntegrityError(state.session_key)

        was_correct = question.is_correct(option)
        logger.info(
            "answer_submitted",
            session_key=state.session_key,
            user_id=state.user_id,
            question_number=question_number,
            question_id=question.question_id,
            was_correct=was_correct,
        )
        if was_correct:
            result = await _apply_correct_answer(deps, state, question)
        else:
            await resolve_wrong_answer(deps, state, question)
            result = AnswerResult(
                status=AnswerStatus.WRONG,
                question_number=question_number,
                score=state.current_score,
            )
        await _update_stats(deps, question, was_correct=was_correct)
        return result


async def _apply_correct_answer(
    deps: EngineDeps,
    state: GameSessionState,
    question: TriviaQuestion,
) -> AnswerResult:
    rung = state.current_question
    state.current_score = deps.ladder.prize_for(rung)
    state.current_question = rung + 1
    state.current_question_id = None
    state.questions_answered += 1

    await deps.sender.send_message(
        state.channel,
        state.recipient,
        messages.correct_answer_message(question, rung=rung, ladder=deps.ladder),
    )
    if deps.ladder.is_final(rung):
        await complete_game(deps, state, GameOutcome.GRAND_PRIZE)
        return AnswerResult(status=AnswerStatus.GRAND_PRIZE, question_number=rung, score=state.current_score)

    if not await deps.store.update_progress(state):
        logger.info("answer_progress_dropped", session_key=state.session_key, question_number=rung)
        return AnswerResult(status=AnswerStatus.CORRECT, question_number=rung, score=state.current_score)
    await write_session_shadow(deps, state)
    schedule_next_question(deps, state, delay_seconds=deps.timing.next_question_delay_seconds)
    return AnswerResult(status=AnswerStatus.CORRECT, question_number=rung, score=state.current_score)
