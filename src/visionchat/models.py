"""Chat, message and folder records plus their dict (wire) form."""

from __future__ import annotations

import math
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Literal, TypedDict

Role = Literal["user", "assistant", "system"]

_ROLES: frozenset[str] = frozenset({"user", "assistant", "system"})


class ContextEntry(TypedDict):
    """The ``{role, content}`` pair sent to a remote model."""

    role: str
    content: str


def generate_id() -> str:
    """Return a short random identifier."""
    return uuid.uuid4().hex[:12]


def utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


def estimate_token_count(text: str) -> int:
    """Rough token estimate: one token per four characters."""
    return math.ceil(len(text) / 4)


def _to_iso(value: datetime) -> str:
    return value.isoformat()


def _from_iso(value: Any) -> datetime:
    """Parse an ISO-8601 string (or pass through a datetime)."""
    if isinstance(value, datetime):
        dt = value
    elif value:
        # ``Z`` suffix comes from JavaScript's toISOString()
        dt = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    else:
        return utcnow()
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


@dataclass
class ImageAttachment:
    """An uploaded image referenced by its public URL."""

    url: str
    name: str = ""
    size: int = 0
    type: str = ""
    description: str | None = None
    id: str = field(default_factory=generate_id)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "url": self.url,
            "name": self.name,
            "size": self.size,
            "type": self.type,
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ImageAttachment:
        return cls(
            id=data.get("id") or generate_id(),
            url=data["url"],
            name=data.get("name", ""),
            size=int(data.get("size", 0) or 0),
            type=data.get("type", ""),
            description=data.get("description"),
        )


@dataclass
class Message:
    """One turn in a conversation.

    ``id`` and ``timestamp`` are fixed at creation. ``content`` only changes
    through an explicit edit, which also sets ``is_edited``.
    """

    role: Role
    content: str
    id: str = field(default_factory=generate_id)
    timestamp: datetime = field(default_factory=utcnow)
    images: list[ImageAttachment] | None = None
    tokens: int | None = None
    is_edited: bool = False
    parent_id: str | None = None

    def __post_init__(self) -> None:
        if self.role not in _ROLES:
            raise ValueError(f"Unknown message role: {self.role!r}")

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "role": self.role,
            "content": self.content,
            "timestamp": _to_iso(self.timestamp),
            "isEdited": self.is_edited,
        }
        if self.images:
            data["images"] = [img.to_dict() for img in self.images]
        if self.tokens is not None:
            data["tokens"] = self.tokens
        if self.parent_id:
            data["parentId"] = self.parent_id
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Message:
        images = data.get("images")
        return cls(
            id=data.get("id") or generate_id(),
            role=data["role"],
            content=data.get("content", ""),
            timestamp=_from_iso(data.get("timestamp")),
            images=[ImageAttachment.from_dict(i) for i in images] if images else None,
            tokens=data.get("tokens"),
            is_edited=bool(data.get("isEdited", False)),
            parent_id=data.get("parentId"),
        )


@dataclass
class ModelConfig:
    """Per-chat generation parameters."""

    model: str
    provider: str
    id: str = field(default_factory=generate_id)
    name: str = "Default Configuration"
    temperature: float = 0.7
    max_tokens: int = 4096
    top_p: float = 1.0
    frequency_penalty: float = 0.0
    presence_penalty: float = 0.0
    system_prompt: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "provider": self.provider,
            "model": self.model,
            "temperature": self.temperature,
            "maxTokens": self.max_tokens,
            "topP": self.top_p,
            "frequencyPenalty": self.frequency_penalty,
            "presencePenalty": self.presence_penalty,
            "systemPrompt": self.system_prompt,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ModelConfig:
        return cls(
            id=data.get("id") or generate_id(),
            name=data.get("name", "Default Configuration"),
            provider=data["provider"],
            model=data["model"],
            temperature=float(data.get("temperature", 0.7)),
            max_tokens=int(data.get("maxTokens", 4096)),
            top_p=float(data.get("topP", 1.0)),
            frequency_penalty=float(data.get("frequencyPenalty", 0.0)),
            presence_penalty=float(data.get("presencePenalty", 0.0)),
            system_prompt=data.get("systemPrompt"),
        )


@dataclass
class Chat:
    """A conversation container.

    ``summary`` condenses every message up to and including
    ``last_summarized_index``. Both are ``None`` until the first summary.
    """

    model_config: ModelConfig
    title: str = "New Chat"
    id: str = field(default_factory=generate_id)
    messages: list[Message] = field(default_factory=list)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
    summary: str | None = None
    last_summarized_index: int | None = None
    folder_id: str | None = None
    is_starred: bool = False
    total_tokens: int = 0

    def find_message_index(self, message_id: str) -> int:
        """Return the position of *message_id*, or -1."""
        for i, msg in enumerate(self.messages):
            if msg.id == message_id:
                return i
        return -1

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "messages": [m.to_dict() for m in self.messages],
            "modelConfig": self.model_config.to_dict(),
            "createdAt": _to_iso(self.created_at),
            "updatedAt": _to_iso(self.updated_at),
            "isStarred": self.is_starred,
            "totalTokens": self.total_tokens,
        }
        if self.summary is not None:
            data["summary"] = self.summary
        if self.last_summarized_index is not None:
            data["lastSummarizedIndex"] = self.last_summarized_index
        if self.folder_id:
            data["folderId"] = self.folder_id
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Chat:
        return cls(
            id=data.get("id") or generate_id(),
            title=data.get("title", "New Chat"),
            messages=[Message.from_dict(m) for m in data.get("messages") or []],
            model_config=ModelConfig.from_dict(data["modelConfig"]),
            created_at=_from_iso(data.get("createdAt")),
            updated_at=_from_iso(data.get("updatedAt")),
            summary=data.get("summary"),
            last_summarized_index=data.get("lastSummarizedIndex"),
            folder_id=data.get("folderId"),
            is_starred=bool(data.get("isStarred", False)),
            total_tokens=int(data.get("totalTokens", 0) or 0),
        )


@dataclass
class Folder:
    """A named group of chats."""

    name: str
    id: str = field(default_factory=generate_id)
    parent_id: str | None = None
    chat_ids: list[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "parentId": self.parent_id,
            "chatIds": list(self.chat_ids),
            "createdAt": _to_iso(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Folder:
        return cls(
            id=data.get("id") or generate_id(),
            name=data["name"],
            parent_id=data.get("parentId"),
            chat_ids=list(data.get("chatIds") or []),
            created_at=_from_iso(data.get("createdAt")),
        )
