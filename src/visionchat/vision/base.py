from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence

from visionchat.models import Message

DEFAULT_QUESTION = "What is inside this image? Describe it in detail."
# Only the tail of the conversation is sent with an image
HISTORY_COUNT = 5
HISTORY_CHARS = 200


def build_vision_prompt(question: str | None = None, history: Sequence[Message] | None = None) -> str:
    """Combine the question with a short hint of the preceding conversation."""
    question = (question or "").strip() or DEFAULT_QUESTION
    if not history:
        return question

    lines = ["Previous conversation:"]
    for msg in history[-HISTORY_COUNT:]:
        label = "User" if msg.role == "user" else "AI"
        content = msg.content
        if len(content) > HISTORY_CHARS:
            content = content[:HISTORY_CHARS] + "..."
        lines.append(f"{label}: {content}")
    lines.append("")
    lines.append(f"Current question: {question}")
    return "\n".join(lines)


class VisionAnalyzerAPI(ABC):
    """Abstract base class for image description providers."""

    name: str = "vision"

    @abstractmethod
    async def analyze(
        self,
        image_url: str,
        question: str | None = None,
        history: Sequence[Message] | None = None,
        *,
        session_id: str | None = None,
    ) -> str:
        """Return a text description of the image at *image_url*."""
        raise NotImplementedError
