from __future__ import annotations

import httpx
import structlog
from aiogram import Bot
from aiogram.exceptions import TelegramAPIError

from app.core.config import Settings
from app.game.sessions.errors import TransientStoreFailure
from app.game.sessions.types import Channel

logger = structlog.get_logger("app.services.messaging")

TELEGRAM_MESSAGE_LIMIT = 4096


class TelegramMessageSender:
    def __init__(self, bot: Bot) -> None:
        self._bot = bot

    async def send_message(self, channel: Channel, recipient: str, text: str) -> None:
        try:
            await self._bot.send_message(chat_id=int(recipient), text=text[:TELEGRAM_MESSAGE_LIMIT])
        except TelegramAPIError as exc:
            logger.warning(
                "telegram_send_failed",
                recipient=recipient,
                error_type=type(exc).__name__,
            )
            raise TransientStoreFailure("telegram_send_message") from exc


class WhatsAppMessageSender:
    def __init__(
        self,
        *,
        client: httpx.AsyncClient,
        api_url: str,
        access_token: str,
        phone_number_id: str,
    ) -> None:
        self._client = client
        self._url = f"{api_url.rstrip('/')}/{phone_number_id}/messages"
        self._headers = {"Authorization": f"Bearer {access_token}"}

    @classmethod
    def from_settings(cls, settings: Settings, client: httpx.AsyncClient) -> WhatsAppMessageSender:
        return cls(
            client=client,
            api_url=settings.whatsapp_api_url,
            access_token=settings.whatsapp_access_token,
            phone_number_id=settings.whatsapp_phone_number_id,
        )

    async def send_message(self, channel: Channel, recipient: str, text: str) -> None:
        body = {
            "messaging_product": "whatsapp",
            "recipient_type": "individual",
            "to": recipient,
            "type": "text",
            "text": {"preview_url": False, "body": text},
        }
        try:
            response = await self._client.post(self._url, json=body, headers=self._headers)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning(
                "whatsapp_send_failed",
                recipient=recipient,
                error_type=type(exc).__name__,
            )
            raise TransientStoreFailure("whatsapp_send_message") from exc


class ChannelMessageSender:
    """Routes each outbound message to the sender registered for its channel."""

    def __init__(
        self,
        *,
        telegram: TelegramMessageSender | None = None,
        whatsapp: WhatsAppMessageSender | None = None,
    ) -> None:
        self._senders: dict[Channel, TelegramMessageSender | WhatsAppMessageSender] = {}
        if telegram is not None:
            self._senders[Channel.TELEGRAM] = telegram
        if whatsapp is not None:
            self._senders[Channel.WHATSAPP] = whatsapp

    async def send_message(self, channel: Channel, recipient: str, text: str) -> None:
        sender = self._senders.get(channel)
        if sender is None:
            logger.error("message_channel_not_configured", channel=channel.value)
            raise TransientStoreFailure(f"channel {channel.value} is not configured")
        await sender.send_message(channel, recipient, text)
