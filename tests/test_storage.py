"""Tests for SQLite chat persistence."""

from __future__ import annotations

import sqlite3
from datetime import datetime, timedelta, timezone

from visionchat.models import Chat, Folder, Message, ModelConfig
from visionchat.storage import ChatRepository


def _chat(title: str, updated_at: datetime) -> Chat:
    return Chat(
        title=title,
        model_config=ModelConfig(model="resita-chatgpt", provider="resita"),
        updated_at=updated_at,
    )


class TestChatRepository:
    """Tests for ChatRepository."""

    def test_init_creates_tables(self, temp_db):
        ChatRepository(temp_db)
        with sqlite3.connect(temp_db) as conn:
            tables = {row[0] for row in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")}
        assert {"chats", "folders"} <= tables

    def test_round_trip(self, repository):
        chat = _chat("Round trip", datetime(2025, 1, 2, 3, 4, 5, tzinfo=timezone.utc))
        chat.messages.append(Message(role="user", content="héllo", tokens=2))
        chat.summary = "Topics discussed: héllo"
        chat.last_summarized_index = 0
        repository.save_chat(chat)

        [loaded] = repository.load_chats()
        assert loaded.id == chat.id
        assert loaded.title == "Round trip"
        assert loaded.updated_at == chat.updated_at
        assert loaded.messages[0].content == "héllo"
        assert loaded.messages[0].timestamp == chat.messages[0].timestamp
        assert loaded.summary == chat.summary
        assert loaded.last_summarized_index == 0

    def test_save_replaces_existing(self, repository):
        chat = _chat("v1", datetime.now(timezone.utc))
        repository.save_chat(chat)
        chat.title = "v2"
        repository.save_chat(chat)
        assert [c.title for c in repository.load_chats()] == ["v2"]

    def test_load_orders_by_updated_desc(self, repository):
        now = datetime.now(timezone.utc)
        repository.save_chat(_chat("old", now - timedelta(days=1)))
        repository.save_chat(_chat("new", now))
        assert [c.title for c in repository.load_chats()] == ["new", "old"]

    def test_delete_chat(self, repository):
        chat = _chat("gone", datetime.now(timezone.utc))
        repository.save_chat(chat)
        repository.delete_chat(chat.id)
        assert repository.load_chats() == []

    def test_unreadable_rows_skipped(self, repository, temp_db):
        repository.save_chat(_chat("good", datetime.now(timezone.utc)))
        with sqlite3.connect(temp_db) as conn:
            conn.execute("INSERT INTO chats (id, payload, updated_at) VALUES ('bad', 'not json', '')")
        assert [c.title for c in repository.load_chats()] == ["good"]

    def test_folders(self, repository):
        folder = Folder(name="Work", chat_ids=["a", "b"])
        repository.save_folder(folder)
        [loaded] = repository.load_folders()
        assert loaded.id == folder.id
        assert loaded.chat_ids == ["a", "b"]

        repository.delete_folder(folder.id)
        assert repository.load_folders() == []

    def test_clear(self, repository):
        repository.save_chat(_chat("x", datetime.now(timezone.utc)))
        repository.save_folder(Folder(name="y"))
        repository.clear()
        assert repository.load_chats() == []
        assert repository.load_folders() == []
