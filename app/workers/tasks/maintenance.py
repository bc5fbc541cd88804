from __future__ import annotations

import structlog

from app.core.config import get_settings
from app.db.session import SessionLocal
from app.game.sessions.expiry import RedisExpiryStore
from app.game.sessions.runtime import build_sweeper
from app.game.sessions.store import SqlSessionStore
from app.game.sessions.timers import TimerRegistry
from app.workers.asyncio_runner import run_async_job
from app.workers.celery_app import celery_app

logger = structlog.get_logger(__name__)


async def run_zombie_sweep_async() -> dict[str, int]:
    settings = get_settings()
    expiry = RedisExpiryStore.from_url(settings.redis_url)
    # The worker owns no in-process timers; only durable state is reconciled here.
    sweeper = build_sweeper(
        settings,
        store=SqlSessionStore(SessionLocal),
        expiry=expiry,
        timers=TimerRegistry(),
    )
    try:
        sweep = await sweeper.sweep_zombies()
    finally:
        await expiry.close()

    result = {"cancelled_sessions": sweep.cancelled}
    logger.info("zombie_sweep_task_finished", **result)
    return result


@celery_app.task(name="app.workers.tasks.maintenance.run_zombie_sweep")
def run_zombie_sweep() -> dict[str, int]:
    return run_async_job(run_zombie_sweep_async())


celery_app.conf.beat_schedule = celery_app.conf.beat_schedule or {}
celery_app.conf.beat_schedule.update(
    {
        "zombie-session-sweep-every-10-minutes": {
            "task": "app.workers.tasks.maintenance.run_zombie_sweep",
            "schedule": float(get_settings().zombie_sweep_interval_seconds),
            "options": {"queue": "q_normal"},
        },
    }
)
