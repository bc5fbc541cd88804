from __future__ import annotations

import json

import httpx
import pytest
from aiogram.exceptions import TelegramAPIError
from aiogram.methods import SendMessage

from app.game.sessions.errors import TransientStoreFailure
from app.game.sessions.types import Channel
from app.services.messaging import (
    TELEGRAM_MESSAGE_LIMIT,
    ChannelMessageSender,
    TelegramMessageSender,
    WhatsAppMessageSender,
)


def _whatsapp(handler) -> tuple[WhatsAppMessageSender, httpx.AsyncClient]:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    sender = WhatsAppMessageSender(
        client=client,
        api_url="https://graph.example.test/v18.0/",
        access_token="token-123",
        phone_number_id="555",
    )
    return sender, client


@pytest.mark.asyncio
async def test_whatsapp_sender_posts_text_message() -> None:
    captured: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(200, json={"messages": [{"id": "wamid.1"}]})

    sender, client = _whatsapp(handler)
    async with client:
        await sender.send_message(Channel.WHATSAPP, "2348000000001", "hello")

    assert len(captured) == 1
    request = captured[0]
    assert str(request.url) == "https://graph.example.test/v18.0/555/messages"
    assert request.headers["Authorization"] == "Bearer token-123"
    body = json.loads(request.content)
    assert body["to"] == "2348000000001"
    assert body["text"]["body"] == "hello"


@pytest.mark.asyncio
async def test_whatsapp_sender_wraps_http_errors() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, json={"error": "boom"})

    sender, client = _whatsapp(handler)
    async with client:
        with pytest.raises(TransientStoreFailure):
            await sender.send_message(Channel.WHATSAPP, "2348000000001", "hello")


@pytest.mark.asyncio
async def test_channel_sender_routes_by_channel() -> None:
    calls: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(json.loads(request.content)["to"])
        return httpx.Response(200, json={})

    whatsapp, client = _whatsapp(handler)
    sender = ChannelMessageSender(whatsapp=whatsapp)
    async with client:
        await sender.send_message(Channel.WHATSAPP, "234", "hi")
        with pytest.raises(TransientStoreFailure):
            await sender.send_message(Channel.TELEGRAM, "42", "hi")

    assert calls == ["234"]


class _RecordingBot:
    def __init__(self, *, fail: bool = False) -> None:
        self.calls: list[dict[str, object]] = []
        self._fail = fail

    async def send_message(self, **kwargs: object) -> None:
        if self._fail:
            raise TelegramAPIError(SendMessage(chat_id=1, text="x"), "Bad Gateway")
        self.calls.append(kwargs)


@pytest.mark.asyncio
async def test_telegram_sender_truncates_long_text() -> None:
    bot = _RecordingBot()
    sender = TelegramMessageSender(bot)  # type: ignore[arg-type]

    await sender.send_message(Channel.TELEGRAM, "42", "x" * 5000)

    assert bot.calls == [{"chat_id": 42, "text": "x" * TELEGRAM_MESSAGE_LIMIT}]


@pytest.mark.asyncio
async def test_telegram_sender_wraps_api_errors() -> None:
    sender = TelegramMessageSender(_RecordingBot(fail=True))  # type: ignore[arg-type]

    with pytest.raises(TransientStoreFailure):
        await sender.send_message(Channel.TELEGRAM, "42", "hello")
