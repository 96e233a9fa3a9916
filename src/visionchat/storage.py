"""SQLite persistence for chats and folders.

Each record is stored as its JSON dict form; the store calls in here after
every mutation rather than persisting implicitly.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from visionchat.models import Chat, Folder

_LOG = logging.getLogger(__name__)


class ChatRepository:
    """Database interface for persisted chats and folders."""

    def __init__(self, db_path: str | Path) -> None:
        self.db_path = str(db_path)
        self.init_db()

    # ==================== Database Connection ====================

    @contextmanager
    def _get_connection(self) -> Iterator[sqlite3.Connection]:
        """Yield a connection that commits on success and always closes."""
        conn = sqlite3.connect(self.db_path)
        try:
            yield conn
            conn.commit()
        finally:
            conn.close()

    def init_db(self) -> None:
        """Create required tables if they don't exist."""
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        with self._get_connection() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS chats (
                    id TEXT PRIMARY KEY,
                    payload TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS folders (
                    id TEXT PRIMARY KEY,
                    payload TEXT NOT NULL
                )
                """
            )

    # ==================== Chats ====================

    def save_chat(self, chat: Chat) -> None:
        data = chat.to_dict()
        with self._get_connection() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO chats (id, payload, updated_at) VALUES (?, ?, ?)",
                (chat.id, json.dumps(data, ensure_ascii=False), data["updatedAt"]),
            )

    def delete_chat(self, chat_id: str) -> None:
        with self._get_connection() as conn:
            conn.execute("DELETE FROM chats WHERE id = ?", (chat_id,))

    def load_chats(self) -> list[Chat]:
        """All stored chats, most recently updated first.

        Rows that fail to decode are logged and skipped.
        """
        with self._get_connection() as conn:
            rows = conn.execute("SELECT id, payload FROM chats ORDER BY updated_at DESC").fetchall()

        chats: list[Chat] = []
        for chat_id, payload in rows:
            try:
                chats.append(Chat.from_dict(json.loads(payload)))
            except (ValueError, KeyError, TypeError) as exc:
                _LOG.warning("Skipping unreadable chat %s: %s", chat_id, exc)
        return chats

    # ==================== Folders ====================

    def save_folder(self, folder: Folder) -> None:
        with self._get_connection() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO folders (id, payload) VALUES (?, ?)",
                (folder.id, json.dumps(folder.to_dict(), ensure_ascii=False)),
            )

    def delete_folder(self, folder_id: str) -> None:
        with self._get_connection() as conn:
            conn.execute("DELETE FROM folders WHERE id = ?", (folder_id,))

    def load_folders(self) -> list[Folder]:
        with self._get_connection() as conn:
            rows = conn.execute("SELECT id, payload FROM folders").fetchall()

        folders: list[Folder] = []
        for folder_id, payload in rows:
            try:
                folders.append(Folder.from_dict(json.loads(payload)))
            except (ValueError, KeyError, TypeError) as exc:
                _LOG.warning("Skipping unreadable folder %s: %s", folder_id, exc)
        return sorted(folders, key=lambda f: f.created_at)

    def clear(self) -> None:
        """Remove every stored chat and folder."""
        with self._get_connection() as conn:
            conn.execute("DELETE FROM chats")
            conn.execute("DELETE FROM folders")
