from __future__ import annotations

from aiogram import F, Router
from aiogram.types import Message

from app.db.session import SessionLocal
from app.game.sessions.intents import GameInputRouter
from app.game.sessions.types import Channel
from app.services.user_onboarding import resolve_player

router = Router(name="gameplay")


def _display_name(message: Message) -> str | None:
    user = message.from_user
    if user is None:
        return None
    if user.first_name and user.first_name.strip():
        return user.first_name.strip()
    if user.username and user.username.strip():
        return user.username.strip()
    return None


def normalize_command_text(text: str) -> str:
    """Telegram commands arrive as ``/start`` or ``/start@BotName``."""
    stripped = text.strip()
    if not stripped.startswith("/"):
        return stripped
    command, _, rest = stripped[1:].partition(" ")
    command = command.split("@", 1)[0]
    return f"{command} {rest}".strip()


@router.message(F.text)
async def handle_text_message(message: Message, input_router: GameInputRouter) -> None:
    if message.text is None:
        return

    player = await resolve_player(
        SessionLocal,
        channel=Channel.TELEGRAM,
        address=str(message.chat.id),
        full_name=_display_name(message),
    )
    await input_router.handle_text(player, normalize_command_text(message.text))
