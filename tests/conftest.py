"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import tempfile
from pathlib import Path

import pytest

from visionchat.chat_store import ChatStore
from visionchat.models import Message
from visionchat.storage import ChatRepository


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def temp_db(temp_dir):
    """Create a temporary database file."""
    db_file = temp_dir / "test.db"
    yield str(db_file)


@pytest.fixture
def repository(temp_db):
    """A ChatRepository backed by a temporary database."""
    return ChatRepository(temp_db)


@pytest.fixture
def store():
    """An in-memory ChatStore (no persistence)."""
    return ChatStore()


@pytest.fixture
def make_messages():
    """Factory for alternating user/assistant messages numbered from 0."""

    def _make(count: int, start: int = 0) -> list[Message]:
        return [
            Message(role="user" if i % 2 == 0 else "assistant", content=f"message {i}")
            for i in range(start, start + count)
        ]

    return _make
