from __future__ import annotations

import math
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass

from visionchat.models import ContextEntry

_PREAMBLE = (
    "You are a helpful AI assistant. Continue the conversation naturally "
    "based on the chat history below."
)
_INSTRUCTIONS = (
    "Based on the conversation above, provide a helpful and contextually "
    "relevant response. If this is the first message, respond naturally to "
    "the user's question."
)


@dataclass(frozen=True)
class TokenUsage:
    prompt_tokens: int = 0
    completion_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens

    @classmethod
    def estimate(cls, prompt: str, completion: str) -> TokenUsage:
        """Four-characters-per-token estimate for APIs that report nothing."""
        return cls(math.ceil(len(prompt) / 4), math.ceil(len(completion) / 4))


@dataclass(frozen=True)
class Completion:
    """Reply text plus token accounting for one remote call."""

    content: str
    usage: TokenUsage


class TextGeneratorAPI(ABC):
    """Abstract base class for chat completion providers."""

    @abstractmethod
    async def generate(
        self,
        entries: Sequence[ContextEntry],
        *,
        temperature: float = 0.7,
        max_tokens: int = 4096,
    ) -> Completion:
        """Return the model's reply to the context *entries*."""
        raise NotImplementedError


def render_transcript(entries: Sequence[ContextEntry]) -> str:
    """Flatten context entries into one prompt for single-prompt APIs.

    System entries become a context block ahead of the history; user and
    assistant turns are written as labelled lines.

    Raises:
        ValueError: if there is no non-empty final user turn.
    """
    if not entries or not entries[-1]["content"].strip():
        raise ValueError("Empty message content")

    system_parts = [e["content"] for e in entries if e["role"] == "system"]
    lines = [_PREAMBLE, ""]
    if system_parts:
        lines.append("=== Context ===")
        lines.extend(system_parts)
        lines.append("")

    lines.append("=== Chat History ===")
    for entry in entries:
        if entry["role"] == "user":
            lines.append(f"User: {entry['content']}")
        elif entry["role"] == "assistant":
            lines.append(f"Assistant: {entry['content']}")

    lines.append("")
    lines.append("=== Instructions ===")
    lines.append(_INSTRUCTIONS)
    return "\n".join(lines).strip()
