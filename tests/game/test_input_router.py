from __future__ import annotations

from uuid import UUID

import pytest

from app.game.sessions.engine import messages
from app.game.sessions.errors import TransientStoreFailure
from app.game.sessions.intents import GameInputRouter, InputIntent, classify_input, parse_tournament_id
from app.game.sessions.types import GameKind, SessionStatus
from tests.game.engine_fakes import build_harness, player, wait_for_question


@pytest.mark.parametrize(
    ("text", "in_game", "awaiting_ready", "expected"),
    [
        ("RESET", True, False, InputIntent.RESET),
        ("RESTART", False, False, InputIntent.RESET),
        ("PLAY", False, False, InputIntent.START_GAME),
        ("1", False, False, InputIntent.START_GAME),
        ("PRACTICE", False, False, InputIntent.START_PRACTICE),
        ("LEADERBOARD", False, False, InputIntent.LEADERBOARD),
        ("HELLO", False, False, InputIntent.MENU),
        ("START", True, True, InputIntent.CONFIRM_READY),
        ("B", True, True, InputIntent.AWAIT_READY),
        ("50", True, False, InputIntent.ELIMINATE_TWO),
        ("50:50", True, False, InputIntent.ELIMINATE_TWO),
        ("SKIP", True, False, InputIntent.REPLACE_QUESTION),
        ("C", True, False, InputIntent.ANSWER),
        ("MAYBE", True, False, InputIntent.USAGE_HINT),
        ("PLAY", True, False, InputIntent.USAGE_HINT),
    ],
)
def test_classify_input(text: str, in_game: bool, awaiting_ready: bool, expected: InputIntent) -> None:
    assert classify_input(text, in_game=in_game, awaiting_ready=awaiting_ready) == expected


def test_parse_tournament_id() -> None:
    raw = "TOURNAMENT 0f8fad5b-d9cb-469f-a165-70867728950e"

    assert parse_tournament_id(raw) == UUID("0f8fad5b-d9cb-469f-a165-70867728950e")
    assert parse_tournament_id("TOURNAMENT nope") is None
    assert parse_tournament_id("PLAY") is None
    assert classify_input(raw, in_game=False, awaiting_ready=False) == InputIntent.START_TOURNAMENT


@pytest.mark.asyncio
async def test_router_drives_a_game_from_free_text() -> None:
    harness = build_harness()
    router = GameInputRouter(harness.engine)
    who = player(1)

    assert await router.handle_text(who, "  play ") == InputIntent.START_GAME
    assert await router.handle_text(who, "start") == InputIntent.CONFIRM_READY
    state = await wait_for_question(harness, 1, 1)
    question = harness.questions.questions[state.current_question_id]

    assert await router.handle_text(who, question.correct_option.value.lower()) == InputIntent.ANSWER
    assert harness.sender.count("CORRECT!") == 1
    await harness.timers.close()


@pytest.mark.asyncio
async def test_router_rejection_is_not_followed_by_apology() -> None:
    harness = build_harness(entries={1: 0})
    router = GameInputRouter(harness.engine)

    intent = await router.handle_text(player(1), "PLAY")

    assert intent == InputIntent.START_GAME
    assert harness.sender.texts == [messages.rejection_message("no_entries_remaining")]


@pytest.mark.asyncio
async def test_router_practice_and_reset() -> None:
    harness = build_harness(entries={})
    router = GameInputRouter(harness.engine)
    who = player(1)

    await router.handle_text(who, "practice")
    state = harness.store.peek_active(1)
    assert state is not None and state.game_kind == GameKind.PRACTICE

    assert await router.handle_text(who, "reset") == InputIntent.RESET
    assert harness.store.rows[state.session_id].status == SessionStatus.CANCELLED
    assert harness.sender.texts[-1] == messages.RESET_DONE


@pytest.mark.asyncio
async def test_router_menu_and_usage_hints() -> None:
    harness = build_harness()
    router = GameInputRouter(harness.engine)
    who = player(1)

    await router.handle_text(who, "hi there")
    assert harness.sender.texts[-1] == messages.MAIN_MENU_HINT

    await router.handle_text(who, "PLAY")
    await router.handle_text(who, "what?")
    assert harness.sender.texts[-1] == messages.READY_PROMPT


@pytest.mark.asyncio
async def test_router_apologizes_on_transient_failure() -> None:
    harness = build_harness()

    async def broken(user_id: int):
        raise TransientStoreFailure("store down")

    harness.store.get_active_for_user = broken
    router = GameInputRouter(harness.engine)

    await router.handle_text(player(1), "PLAY")

    assert harness.sender.texts == [messages.GENERIC_APOLOGY]


@pytest.mark.asyncio
async def test_router_apologizes_on_unexpected_error() -> None:
    harness = build_harness()

    async def broken(user_id: int):
        raise RuntimeError("boom")

    harness.payments.has_entries_remaining = broken
    router = GameInputRouter(harness.engine)

    await router.handle_text(player(1), "PLAY")

    assert harness.sender.texts == [messages.GENERIC_APOLOGY]
