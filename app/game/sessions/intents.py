from __future__ import annotations

from enum import Enum
from uuid import UUID

import structlog

from app.game.sessions.engine import GameSessionEngine
from app.game.sessions.engine import messages
from app.game.sessions.errors import GameSessionError, TransientStoreFailure
from app.game.sessions.types import GameKind, Lifeline, Player

logger = structlog.get_logger("app.game.sessions.intents")

START_WORDS = frozenset({"START", "PLAY", "1"})
RESET_WORDS = frozenset({"RESET", "RESTART"})
LEADERBOARD_WORDS = frozenset({"LEADERBOARD", "3"})
ANSWER_LETTERS = frozenset({"A", "B", "C", "D"})
TOURNAMENT_PREFIX = "TOURNAMENT "


class InputIntent(str, Enum):
    RESET = "RESET"
    START_GAME = "START_GAME"
    START_PRACTICE = "START_PRACTICE"
    START_TOURNAMENT = "START_TOURNAMENT"
    CONFIRM_READY = "CONFIRM_READY"
    AWAIT_READY = "AWAIT_READY"
    ANSWER = "ANSWER"
    ELIMINATE_TWO = "ELIMINATE_TWO"
    REPLACE_QUESTION = "REPLACE_QUESTION"
    LEADERBOARD = "LEADERBOARD"
    USAGE_HINT = "USAGE_HINT"
    MENU = "MENU"


def parse_tournament_id(normalized: str) -> UUID | None:
    if not normalized.startswith(TOURNAMENT_PREFIX):
        return None
    try:
        return UUID(normalized[len(TOURNAMENT_PREFIX) :].strip())
    except ValueError:
        return None


def classify_input(normalized: str, *, in_game: bool, awaiting_ready: bool) -> InputIntent:
    if normalized in RESET_WORDS:
        return InputIntent.RESET
    if not in_game:
        if normalized in START_WORDS:
            return InputIntent.START_GAME
        if normalized == "PRACTICE":
            return InputIntent.START_PRACTICE
        if parse_tournament_id(normalized) is not None:
            return InputIntent.START_TOURNAMENT
        if normalized in LEADERBOARD_WORDS:
            return InputIntent.LEADERBOARD
        return InputIntent.MENU
    if awaiting_ready:
        return InputIntent.CONFIRM_READY if normalized == "START" else InputIntent.AWAIT_READY
    if "50" in normalized:
        return InputIntent.ELIMINATE_TWO
    if "SKIP" in normalized:
        return InputIntent.REPLACE_QUESTION
    if normalized in ANSWER_LETTERS:
        return InputIntent.ANSWER
    return InputIntent.USAGE_HINT


class GameInputRouter:
    """Maps free-text chat input onto engine calls and guarantees a reply on failure."""

    def __init__(self, engine: GameSessionEngine) -> None:
        self._engine = engine

    async def handle_text(self, player: Player, text: str) -> InputIntent:
        normalized = " ".join(text.strip().upper().split())
        intent = InputIntent.MENU
        try:
            intent = await self._classify(player, normalized)
            await self._dispatch(player, intent, normalized)
        except TransientStoreFailure:
            logger.exception("game_input_failed", user_id=player.user_id, intent=intent.value)
            await self._apologize(player)
        except GameSessionError as exc:
            logger.info(
                "game_input_rejected",
                user_id=player.user_id,
                intent=intent.value,
                error_type=type(exc).__name__,
            )
        except Exception:
            logger.exception("game_input_failed", user_id=player.user_id, intent=intent.value)
            await self._apologize(player)
        return intent

    async def _classify(self, player: Player, normalized: str) -> InputIntent:
        if normalized in RESET_WORDS:
            return InputIntent.RESET
        state = await self._engine.get_active_session(player.user_id)
        awaiting_ready = state is not None and await self._engine.is_awaiting_ready(player.user_id)
        return classify_input(normalized, in_game=state is not None, awaiting_ready=awaiting_ready)

    async def _dispatch(self, player: Player, intent: InputIntent, normalized: str) -> None:
        engine = self._engine
        sender = engine.deps.sender
        if intent == InputIntent.RESET:
            await engine.reset(player)
        elif intent == InputIntent.START_GAME:
            await engine.start(player, GameKind.REGULAR)
        elif intent == InputIntent.START_PRACTICE:
            await engine.start(player, GameKind.PRACTICE)
        elif intent == InputIntent.START_TOURNAMENT:
            await engine.start(player, GameKind.TOURNAMENT, tournament_id=parse_tournament_id(normalized))
        elif intent == InputIntent.CONFIRM_READY:
            if not await engine.confirm_ready(player):
                await sender.send_message(player.channel, player.address, messages.USAGE_HINT)
        elif intent == InputIntent.AWAIT_READY:
            await sender.send_message(player.channel, player.address, messages.READY_PROMPT)
        elif intent == InputIntent.ELIMINATE_TWO:
            await engine.use_lifeline(player, Lifeline.ELIMINATE_TWO)
        elif intent == InputIntent.REPLACE_QUESTION:
            await engine.use_lifeline(player, Lifeline.REPLACE_QUESTION)
        elif intent == InputIntent.ANSWER:
            await engine.answer(player, normalized)
        elif intent == InputIntent.LEADERBOARD:
            await engine.send_leaderboard(player)
        elif intent == InputIntent.USAGE_HINT:
            await sender.send_message(player.channel, player.address, messages.USAGE_HINT)
        else:
            await sender.send_message(player.channel, player.address, messages.MAIN_MENU_HINT)

    async def _apologize(self, player: Player) -> None:
        try:
            await self._engine.deps.sender.send_message(player.channel, player.address, messages.GENERIC_APOLOGY)
        except Exception:
            logger.warning("apology_send_failed", user_id=player.user_id)
