from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

import httpx
import structlog
from aiogram import Bot

from app.core.config import Settings
from app.db.session import SessionLocal
from app.economy.entries.service import EntriesPaymentProvider
from app.economy.streak.service import DbStreakRecorder
from app.game.questions.bank import QuestionBank
from app.game.sessions.engine import EngineDeps, GameSessionEngine, GameTiming
from app.game.sessions.expiry import RedisExpiryStore
from app.game.sessions.intents import GameInputRouter
from app.game.sessions.maintenance import MaintenanceSweeper
from app.game.sessions.store import SqlSessionStore
from app.game.sessions.timers import TimerRegistry
from app.game.tournaments.entries import DbTournamentProvider
from app.services.messaging import ChannelMessageSender, TelegramMessageSender, WhatsAppMessageSender

logger = structlog.get_logger("app.game.sessions.runtime")


@dataclass(slots=True)
class GameRuntime:
    engine: GameSessionEngine
    input_router: GameInputRouter
    sweeper: MaintenanceSweeper
    expiry: RedisExpiryStore
    http_client: httpx.AsyncClient
    bot: Bot


def build_sweeper(
    settings: Settings,
    *,
    store: SqlSessionStore,
    expiry: RedisExpiryStore,
    timers: TimerRegistry,
) -> MaintenanceSweeper:
    return MaintenanceSweeper(
        store=store,
        expiry=expiry,
        timers=timers,
        timing=GameTiming.from_settings(settings),
        zombie_max_age=timedelta(minutes=settings.zombie_session_max_age_minutes),
        zombie_interval_seconds=settings.zombie_sweep_interval_seconds,
        timer_interval_seconds=settings.timer_sweep_interval_seconds,
    )


async def start_runtime(settings: Settings, *, bot: Bot) -> GameRuntime:
    timers = TimerRegistry()
    expiry = RedisExpiryStore.from_url(settings.redis_url)
    store = SqlSessionStore(SessionLocal)
    http_client = httpx.AsyncClient(timeout=httpx.Timeout(10.0))

    whatsapp = None
    if settings.whatsapp_access_token and settings.whatsapp_phone_number_id:
        whatsapp = WhatsAppMessageSender.from_settings(settings, http_client)
    sender = ChannelMessageSender(telegram=TelegramMessageSender(bot), whatsapp=whatsapp)

    engine = GameSessionEngine(
        EngineDeps(
            store=store,
            expiry=expiry,
            timers=timers,
            questions=QuestionBank(SessionLocal),
            payments=EntriesPaymentProvider(SessionLocal),
            tournaments=DbTournamentProvider(SessionLocal),
            sender=sender,
            streaks=DbStreakRecorder(SessionLocal),
            timing=GameTiming.from_settings(settings),
            regular_games_paid=settings.payments_enabled,
        )
    )
    sweeper = build_sweeper(settings, store=store, expiry=expiry, timers=timers)

    try:
        recovered = await engine.recover_timers()
        logger.info("game_runtime_timers_recovered", recovered=recovered)
    except Exception:
        logger.exception("game_runtime_timer_recovery_failed")
    sweeper.start()

    return GameRuntime(
        engine=engine,
        input_router=GameInputRouter(engine),
        sweeper=sweeper,
        expiry=expiry,
        http_client=http_client,
        bot=bot,
    )


async def stop_runtime(runtime: GameRuntime) -> None:
    await runtime.sweeper.stop()
    await runtime.engine.timers.close()
    await runtime.http_client.aclose()
    await runtime.expiry.close()
    await runtime.bot.session.close()
    logger.info("game_runtime_stopped")
