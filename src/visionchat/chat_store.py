"""In-process owner of all chat state.

Callers mutate chats only through :class:`ChatStore`; each mutation is
persisted explicitly through an optional :class:`ChatRepository`.
Appending a message also runs the summary staleness check, so the summary
is always current before the caller builds its next context.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from visionchat.models import Chat, Folder, ImageAttachment, Message, Role, utcnow
from visionchat.settings import default_model_config
from visionchat.storage import ChatRepository
from visionchat.summarization import should_update_summary, update_chat_summary

_LOG = logging.getLogger(__name__)

DEFAULT_TITLE = "New Chat"
_AUTO_TITLE_CHARS = 50


class ChatNotFoundError(KeyError):
    """Raised when an operation names a chat the store does not hold."""


class ChatStore:
    """Holds chats (newest first), folders and the current-chat pointer."""

    def __init__(self, repository: ChatRepository | None = None, default_model: str | None = None) -> None:
        self.repository = repository
        self.default_model = default_model
        self.chats: list[Chat] = []
        self.folders: list[Folder] = []
        self.current_chat_id: str | None = None

    @classmethod
    def load(cls, repository: ChatRepository, default_model: str | None = None) -> ChatStore:
        """Rebuild a store from everything *repository* holds."""
        store = cls(repository, default_model=default_model)
        store.chats = repository.load_chats()
        store.folders = repository.load_folders()
        _LOG.info("Loaded %d chats and %d folders", len(store.chats), len(store.folders))
        return store

    # ---------------------------------------------------------------- helpers

    def _persist(self, chat: Chat) -> None:
        if self.repository is not None:
            self.repository.save_chat(chat)

    def _persist_folder(self, folder: Folder) -> None:
        if self.repository is not None:
            self.repository.save_folder(folder)

    def _touch(self, chat: Chat) -> None:
        chat.updated_at = utcnow()
        self._persist(chat)

    def get_chat(self, chat_id: str) -> Chat:
        for chat in self.chats:
            if chat.id == chat_id:
                return chat
        raise ChatNotFoundError(chat_id)

    def _get_folder(self, folder_id: str) -> Folder:
        for folder in self.folders:
            if folder.id == folder_id:
                return folder
        raise KeyError(folder_id)

    # ---------------------------------------------------------------- chats

    def create_chat(self, title: str = DEFAULT_TITLE, model: str | None = None) -> Chat:
        chat = Chat(title=title, model_config=default_model_config(model or self.default_model))
        self.chats.insert(0, chat)
        self.current_chat_id = chat.id
        self._persist(chat)
        _LOG.info("Created chat %s (%s)", chat.id, chat.model_config.model)
        return chat

    def list_chats(self) -> list[Chat]:
        return list(self.chats)

    def delete_chat(self, chat_id: str) -> None:
        chat = self.get_chat(chat_id)
        self.chats.remove(chat)
        for folder in self.folders:
            if chat_id in folder.chat_ids:
                folder.chat_ids.remove(chat_id)
                self._persist_folder(folder)
        if self.current_chat_id == chat_id:
            self.current_chat_id = None
        if self.repository is not None:
            self.repository.delete_chat(chat_id)

    def rename_chat(self, chat_id: str, title: str) -> Chat:
        chat = self.get_chat(chat_id)
        chat.title = title
        self._touch(chat)
        return chat

    def auto_rename_chat(self, chat_id: str, first_message: str) -> Chat:
        """Title a chat after its first user message."""
        if len(first_message) > _AUTO_TITLE_CHARS:
            title = first_message[:_AUTO_TITLE_CHARS] + "..."
        else:
            title = first_message
        return self.rename_chat(chat_id, title)

    def star_chat(self, chat_id: str) -> Chat:
        chat = self.get_chat(chat_id)
        chat.is_starred = not chat.is_starred
        self._persist(chat)
        return chat

    def set_current_chat(self, chat_id: str) -> Chat:
        chat = self.get_chat(chat_id)
        self.current_chat_id = chat_id
        return chat

    def get_current_chat(self) -> Chat | None:
        if self.current_chat_id is None:
            return None
        try:
            return self.get_chat(self.current_chat_id)
        except ChatNotFoundError:
            return None

    def update_model_config(self, chat_id: str, **changes: Any) -> Chat:
        chat = self.get_chat(chat_id)
        for name, value in changes.items():
            if not hasattr(chat.model_config, name):
                raise AttributeError(f"ModelConfig has no field {name!r}")
            setattr(chat.model_config, name, value)
        self._touch(chat)
        return chat

    def search_chats(self, query: str) -> list[Chat]:
        """Chats whose title or any message contains *query* (case-insensitive)."""
        needle = query.lower()
        return [
            chat
            for chat in self.chats
            if needle in chat.title.lower()
            or any(needle in msg.content.lower() for msg in chat.messages)
        ]

    def import_chats(self, records: Iterable[dict[str, Any]]) -> list[Chat]:
        """Add chats from their dict form, skipping ids already present.

        Every record is parsed before anything is stored, so a malformed
        record leaves both memory and the repository untouched.

        Returns:
            The chats actually added, in input order.
        """
        parsed = [Chat.from_dict(record) for record in records]

        known = {chat.id for chat in self.chats}
        added: list[Chat] = []
        for chat in parsed:
            if chat.id in known:
                continue
            known.add(chat.id)
            added.append(chat)

        self.chats = added + self.chats
        for chat in added:
            self._persist(chat)
        _LOG.info("Imported %d chats", len(added))
        return added

    def clear_all(self) -> None:
        self.chats = []
        self.folders = []
        self.current_chat_id = None
        if self.repository is not None:
            self.repository.clear()

    # ---------------------------------------------------------------- messages

    def add_message(
        self,
        chat_id: str,
        role: Role,
        content: str,
        *,
        images: list[ImageAttachment] | None = None,
        tokens: int | None = None,
        parent_id: str | None = None,
    ) -> Message:
        """Append a message, then refresh the summary if it has gone stale."""
        chat = self.get_chat(chat_id)
        message = Message(role=role, content=content, images=images, tokens=tokens, parent_id=parent_id)
        chat.messages.append(message)
        chat.total_tokens += tokens or 0
        chat.updated_at = utcnow()

        if should_update_summary(len(chat.messages), chat.last_summarized_index):
            update_chat_summary(chat)

        self._persist(chat)
        return message

    def update_message(self, chat_id: str, message_id: str, content: str) -> Message:
        chat = self.get_chat(chat_id)
        index = chat.find_message_index(message_id)
        if index == -1:
            raise KeyError(message_id)
        message = chat.messages[index]
        message.content = content
        message.is_edited = True
        self._touch(chat)
        return message

    def delete_message(self, chat_id: str, message_id: str) -> None:
        chat = self.get_chat(chat_id)
        index = chat.find_message_index(message_id)
        if index == -1:
            raise KeyError(message_id)
        del chat.messages[index]
        self._touch(chat)

    def update_chat_summary(self, chat_id: str) -> Chat:
        chat = update_chat_summary(self.get_chat(chat_id))
        self._persist(chat)
        return chat

    # ---------------------------------------------------------------- folders

    def create_folder(self, name: str, parent_id: str | None = None) -> Folder:
        folder = Folder(name=name, parent_id=parent_id)
        self.folders.append(folder)
        self._persist_folder(folder)
        return folder

    def delete_folder(self, folder_id: str) -> None:
        folder = self._get_folder(folder_id)
        self.folders.remove(folder)
        for chat in self.chats:
            if chat.folder_id == folder_id:
                chat.folder_id = None
                self._persist(chat)
        if self.repository is not None:
            self.repository.delete_folder(folder_id)

    def move_to_folder(self, chat_id: str, folder_id: str) -> Chat:
        chat = self.get_chat(chat_id)
        target = self._get_folder(folder_id)
        chat.folder_id = folder_id
        for folder in self.folders:
            if folder is target:
                if chat_id not in folder.chat_ids:
                    folder.chat_ids.append(chat_id)
            elif chat_id in folder.chat_ids:
                folder.chat_ids.remove(chat_id)
            else:
                continue
            self._persist_folder(folder)
        self._persist(chat)
        return chat
