from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties

from app.bot.handlers.gameplay import router as gameplay_router
from app.core.config import get_settings

_dispatcher: Dispatcher | None = None


def build_bot() -> Bot:
    settings = get_settings()
    return Bot(token=settings.telegram_bot_token, default=DefaultBotProperties())


def build_dispatcher() -> Dispatcher:
    global _dispatcher
    if _dispatcher is not None:
        return _dispatcher

    dispatcher = Dispatcher()
    dispatcher.include_router(gameplay_router)
    _dispatcher = dispatcher
    return dispatcher
