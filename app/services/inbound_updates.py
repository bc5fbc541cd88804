from __future__ import annotations

import secrets
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class InboundTextMessage:
    message_id: str
    address: str
    text: str
    display_name: str | None = None


def extract_update_id(update_payload: object) -> int | None:
    if not isinstance(update_payload, dict):
        return None

    update_id = update_payload.get("update_id")
    if isinstance(update_id, int):
        return update_id
    return None


def is_valid_webhook_secret(*, expected_secret: str, received_secret: str | None) -> bool:
    if not expected_secret or not received_secret:
        return False
    return secrets.compare_digest(expected_secret, received_secret)


def _contact_names(value: dict[str, Any]) -> dict[str, str]:
    names: dict[str, str] = {}
    for contact in value.get("contacts") or []:
        if not isinstance(contact, dict):
            continue
        wa_id = contact.get("wa_id")
        profile = contact.get("profile")
        name = profile.get("name") if isinstance(profile, dict) else None
        if isinstance(wa_id, str) and isinstance(name, str) and name.strip():
            names[wa_id] = name.strip()
    return names


def extract_whatsapp_text_messages(payload: object) -> list[InboundTextMessage]:
    """Collect text messages from a Cloud API webhook delivery.

    Status callbacks and non-text message types (images, buttons, reactions)
    are skipped.
    """
    if not isinstance(payload, dict):
        return []

    extracted: list[InboundTextMessage] = []
    for entry in payload.get("entry") or []:
        if not isinstance(entry, dict):
            continue
        for change in entry.get("changes") or []:
            value = change.get("value") if isinstance(change, dict) else None
            if not isinstance(value, dict):
                continue
            names = _contact_names(value)
            for message in value.get("messages") or []:
                if not isinstance(message, dict) or message.get("type") != "text":
                    continue
                sender = message.get("from")
                body = (message.get("text") or {}).get("body")
                if not isinstance(sender, str) or not isinstance(body, str):
                    continue
                extracted.append(
                    InboundTextMessage(
                        message_id=str(message.get("id") or ""),
                        address=sender,
                        text=body,
                        display_name=names.get(sender),
                    )
                )
    return extracted
