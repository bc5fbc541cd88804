from __future__ import annotations

import structlog
from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse, PlainTextResponse

from app.core.config import get_settings
from app.db.session import SessionLocal
from app.game.sessions.runtime import GameRuntime
from app.game.sessions.types import Channel
from app.services.inbound_updates import extract_whatsapp_text_messages, is_valid_webhook_secret
from app.services.user_onboarding import resolve_player

router = APIRouter(tags=["whatsapp"])
logger = structlog.get_logger(__name__)


@router.get("/webhook/whatsapp")
async def whatsapp_verify(request: Request) -> PlainTextResponse:
    params = request.query_params
    if params.get("hub.mode") == "subscribe" and is_valid_webhook_secret(
        expected_secret=get_settings().whatsapp_verify_token,
        received_secret=params.get("hub.verify_token"),
    ):
        return PlainTextResponse(params.get("hub.challenge", ""))
    logger.warning("whatsapp_webhook_verification_failed")
    return PlainTextResponse("forbidden", status_code=status.HTTP_403_FORBIDDEN)


@router.post("/webhook/whatsapp")
async def whatsapp_webhook(request: Request) -> JSONResponse:
    try:
        payload = await request.json()
    except Exception:
        logger.warning("whatsapp_webhook_invalid_json")
        return JSONResponse(status_code=status.HTTP_200_OK, content={"status": "ignored"})

    runtime: GameRuntime = request.app.state.game_runtime
    inbound = extract_whatsapp_text_messages(payload)
    for message in inbound:
        try:
            player = await resolve_player(
                SessionLocal,
                channel=Channel.WHATSAPP,
                address=message.address,
                full_name=message.display_name,
            )
            await runtime.input_router.handle_text(player, message.text)
        except Exception as exc:
            logger.exception(
                "whatsapp_webhook_processing_failed",
                message_id=message.message_id,
                error_type=type(exc).__name__,
            )

    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content={"status": "processed", "messages": len(inbound)},
    )
