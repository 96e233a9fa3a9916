"""Assemble the context sent to a remote model for the next turn.

The context is the running summary (if any) followed by a short window of
the most recent messages, each truncated to a fixed ceiling.
"""

from __future__ import annotations

from collections.abc import Sequence

from visionchat.models import ContextEntry, Message

# Number of trailing messages always sent verbatim
RECENT_COUNT = 5
# Per-message character ceiling for the recent window
MAX_MESSAGE_CHARS = 1000
ELLIPSIS = "..."


def _truncate(text: str, limit: int) -> str:
    if len(text) > limit:
        return text[:limit] + ELLIPSIS
    return text


def format_summary_entry(summary: str) -> ContextEntry:
    """Wrap *summary* as the synthetic system entry that opens the context."""
    return {
        "role": "system",
        "content": (
            f"Previous conversation summary:\n{summary}\n\n"
            "Continue the conversation naturally based on the context above."
        ),
    }


def _valid_watermark(
    message_count: int,
    summary: str | None,
    last_summarized_index: int | None,
) -> int | None:
    """Return the watermark if it can be combined with the recent window.

    A summary without a watermark (or the reverse), or a watermark outside
    the message list, is treated as no summary at all.
    """
    if summary is None or last_summarized_index is None:
        return None
    if last_summarized_index < 0 or last_summarized_index >= message_count:
        return None
    return last_summarized_index


def window_start(message_count: int, last_summarized_index: int | None) -> int:
    """Index of the first message included verbatim."""
    if last_summarized_index is None:
        return max(0, message_count - RECENT_COUNT)
    return max(last_summarized_index + 1, message_count - RECENT_COUNT)


def build_context(
    messages: Sequence[Message],
    summary: str | None = None,
    last_summarized_index: int | None = None,
) -> list[ContextEntry]:
    """
    Build the ordered context entries for the next model call.

    Args:
        messages: The chat's full ordered message list
        summary: Condensed text covering messages up to the watermark
        last_summarized_index: Index of the last message folded into *summary*

    Returns:
        The summary entry (when a valid summary exists) followed by the
        recent window, oldest first. Nothing at or before the watermark is
        repeated.
    """
    watermark = _valid_watermark(len(messages), summary, last_summarized_index)

    context: list[ContextEntry] = []
    if watermark is not None and summary:
        context.append(format_summary_entry(summary))

    start = window_start(len(messages), watermark)
    for msg in messages[start:]:
        context.append(
            {"role": msg.role, "content": _truncate(msg.content, MAX_MESSAGE_CHARS)}
        )

    return context


def format_context_preview(messages: Sequence[Message], summary: str | None = None) -> str:
    """Short human-readable view of what a chat's context looks like."""
    lines: list[str] = []
    if summary:
        lines.append(f"Summary: {summary}")
        lines.append("")

    lines.append(f"Recent messages ({len(messages)}):")
    for msg in messages[-3:]:
        label = "you" if msg.role == "user" else "ai"
        lines.append(f"[{label}] {msg.content[:50]}{ELLIPSIS}")

    return "\n".join(lines)
