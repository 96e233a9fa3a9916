"""Tests for record types and their dict form."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from visionchat.models import Chat, ImageAttachment, Message, estimate_token_count


class TestMessage:
    def test_invalid_role_rejected(self):
        with pytest.raises(ValueError):
            Message(role="robot", content="beep")  # type: ignore[arg-type]

    def test_ids_are_unique(self):
        assert Message(role="user", content="a").id != Message(role="user", content="a").id

    def test_to_dict_uses_iso_timestamps(self):
        message = Message(role="user", content="hi", timestamp=datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc))
        data = message.to_dict()
        assert data["timestamp"] == "2025-03-01T12:00:00+00:00"
        assert data["isEdited"] is False
        assert "tokens" not in data

    def test_from_dict_accepts_javascript_timestamps(self):
        message = Message.from_dict({"role": "assistant", "content": "x", "timestamp": "2025-03-01T12:00:00.000Z"})
        assert message.timestamp == datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)
        assert message.id

    def test_images_round_trip(self):
        image = ImageAttachment(url="https://example.com/a.png", name="a.png", size=10, type="image/png")
        message = Message(role="user", content="see", images=[image])
        restored = Message.from_dict(message.to_dict())
        assert restored.images == [image]


class TestChat:
    def test_round_trip_keeps_summary_fields(self):
        data = {
            "id": "c1",
            "title": "Trip",
            "messages": [{"id": "m1", "role": "user", "content": "hi", "timestamp": "2025-01-01T00:00:00Z"}],
            "modelConfig": {"provider": "nekolabs", "model": "nekolabs-gpt4o", "temperature": 0.3},
            "createdAt": "2025-01-01T00:00:00Z",
            "updatedAt": "2025-01-01T00:00:00Z",
            "summary": "Topics discussed: hi",
            "lastSummarizedIndex": 0,
            "isStarred": True,
            "totalTokens": 7,
        }
        chat = Chat.from_dict(data)
        assert chat.last_summarized_index == 0
        assert chat.model_config.temperature == 0.3
        assert Chat.from_dict(chat.to_dict()).to_dict() == chat.to_dict()

    def test_unsummarized_chat_omits_summary_keys(self):
        chat = Chat.from_dict({"modelConfig": {"provider": "resita", "model": "resita-chatgpt"}})
        data = chat.to_dict()
        assert "summary" not in data
        assert "lastSummarizedIndex" not in data

    def test_find_message_index(self):
        chat = Chat.from_dict({"modelConfig": {"provider": "resita", "model": "resita-chatgpt"}})
        chat.messages.append(Message(role="user", content="x", id="abc"))
        assert chat.find_message_index("abc") == 0
        assert chat.find_message_index("zzz") == -1


@pytest.mark.parametrize(("text", "expected"), [("", 0), ("abc", 1), ("abcd", 1), ("abcde", 2)])
def test_estimate_token_count(text, expected):
    assert estimate_token_count(text) == expected
