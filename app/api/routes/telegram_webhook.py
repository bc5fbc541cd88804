from __future__ import annotations

import structlog
from aiogram.types import Update
from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from app.bot.application import build_dispatcher
from app.core.config import get_settings
from app.game.sessions.runtime import GameRuntime
from app.services.inbound_updates import extract_update_id, is_valid_webhook_secret

router = APIRouter(tags=["telegram"])
logger = structlog.get_logger(__name__)


def _ignored() -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_200_OK, content={"status": "ignored"})


@router.post("/webhook/telegram")
async def telegram_webhook(request: Request) -> JSONResponse:
    settings = get_settings()
    received_secret = request.headers.get("X-Telegram-Bot-Api-Secret-Token")
    if not is_valid_webhook_secret(
        expected_secret=settings.telegram_webhook_secret,
        received_secret=received_secret,
    ):
        logger.warning("telegram_webhook_invalid_secret")
        return _ignored()

    try:
        update_payload = await request.json()
    except Exception:
        logger.warning("telegram_webhook_invalid_json")
        return _ignored()

    update_id = extract_update_id(update_payload)
    if update_id is None:
        logger.warning("telegram_webhook_missing_update_id")
        return _ignored()

    try:
        update = Update.model_validate(update_payload)
    except ValidationError:
        logger.warning("telegram_webhook_invalid_update", update_id=update_id)
        return _ignored()

    runtime: GameRuntime = request.app.state.game_runtime
    try:
        await build_dispatcher().feed_update(
            runtime.bot,
            update,
            input_router=runtime.input_router,
        )
    except Exception as exc:
        # Redelivery would replay a game move, so failures are acknowledged.
        logger.exception(
            "telegram_webhook_processing_failed",
            update_id=update_id,
            error_type=type(exc).__name__,
        )
        return JSONResponse(status_code=status.HTTP_200_OK, content={"status": "failed"})

    return JSONResponse(status_code=status.HTTP_200_OK, content={"status": "processed"})
