from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from app.api.routes.health import router as health_router
from app.api.routes.telegram_webhook import router as telegram_webhook_router
from app.api.routes.whatsapp_webhook import router as whatsapp_webhook_router
from app.bot.application import build_bot
from app.core.config import get_settings
from app.core.logging import configure_logging
from app.db.session import dispose_engine
from app.game.sessions.runtime import start_runtime, stop_runtime


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    runtime = await start_runtime(get_settings(), bot=build_bot())
    app.state.game_runtime = runtime
    try:
        yield
    finally:
        await stop_runtime(runtime)
        await dispose_engine()


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Millionaire Trivia Bot API",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.include_router(health_router)
    app.include_router(telegram_webhook_router)
    app.include_router(whatsapp_webhook_router)
    return app


app = create_app()


def run() -> None:
    settings = get_settings()
    uvicorn.run(
        "app.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=settings.app_env == "dev",
    )


if __name__ == "__main__":
    run()
