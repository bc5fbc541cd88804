from __future__ import annotations

from app.services.inbound_updates import (
    InboundTextMessage,
    extract_update_id,
    extract_whatsapp_text_messages,
    is_valid_webhook_secret,
)


def test_extract_update_id() -> None:
    assert extract_update_id({"update_id": 10}) == 10
    assert extract_update_id({"update_id": "10"}) is None
    assert extract_update_id([1, 2]) is None


def test_webhook_secret_comparison() -> None:
    assert is_valid_webhook_secret(expected_secret="s3cret", received_secret="s3cret") is True
    assert is_valid_webhook_secret(expected_secret="s3cret", received_secret="other") is False
    assert is_valid_webhook_secret(expected_secret="", received_secret="") is False
    assert is_valid_webhook_secret(expected_secret="s3cret", received_secret=None) is False


def test_extract_whatsapp_text_messages_reads_cloud_api_payload() -> None:
    payload = {
        "object": "whatsapp_business_account",
        "entry": [
            {
                "id": "WABA",
                "changes": [
                    {
                        "field": "messages",
                        "value": {
                            "contacts": [{"wa_id": "2348000000001", "profile": {"name": " Chidi "}}],
                            "messages": [
                                {
                                    "from": "2348000000001",
                                    "id": "wamid.A",
                                    "type": "text",
                                    "text": {"body": "PLAY"},
                                },
                                {"from": "2348000000001", "id": "wamid.B", "type": "image", "image": {}},
                            ],
                        },
                    },
                    {"field": "messages", "value": {"statuses": [{"id": "wamid.X", "status": "read"}]}},
                ],
            }
        ],
    }

    assert extract_whatsapp_text_messages(payload) == [
        InboundTextMessage(message_id="wamid.A", address="2348000000001", text="PLAY", display_name="Chidi"),
    ]


def test_extract_whatsapp_text_messages_tolerates_garbage() -> None:
    assert extract_whatsapp_text_messages(None) == []
    assert extract_whatsapp_text_messages({"entry": "nope"}) == []
    assert extract_whatsapp_text_messages({"entry": [{"changes": [{"value": {"messages": [{"type": "text"}]}}]}]}) == []
