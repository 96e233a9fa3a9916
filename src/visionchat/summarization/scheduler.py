"""Decide when a chat's running summary is stale and rebuild it."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from visionchat.models import Chat, Message, utcnow

_LOG = logging.getLogger(__name__)

# Re-summarization cadence, also the size of each summarized group
SLICE_SIZE = 10
# Characters kept from each user message
SNIPPET_CHARS = 100
MAX_SUMMARY_LENGTH = 500
ELLIPSIS = "..."


def should_update_summary(message_count: int, last_summarized_index: int | None = None) -> bool:
    """
    Return True when enough new messages have accumulated since the watermark.

    Args:
        message_count: Number of messages in the chat after the latest append
        last_summarized_index: Current watermark, or None if never summarized

    Returns:
        True once SLICE_SIZE messages sit after the watermark (or exist at
        all, without one).
    """
    if last_summarized_index is None:
        return message_count >= SLICE_SIZE

    new_messages = message_count - last_summarized_index - 1
    return new_messages >= SLICE_SIZE


def _group_line(group: Sequence[Message]) -> str | None:
    topics = [m.content[:SNIPPET_CHARS] for m in group if m.role == "user"]
    if not topics:
        return None
    return f"Topics discussed: {'; '.join(topics)}"


def generate_summary(messages: Sequence[Message]) -> str:
    """
    Condense *messages* into topic lines, one per SLICE_SIZE group.

    Only user turns are kept; a group without any produces no line. The
    whole history is summarized on every call rather than extending the
    previous summary.

    Args:
        messages: The full message history

    Returns:
        Newline-joined topic lines, capped at MAX_SUMMARY_LENGTH characters
        plus an ellipsis. Empty input gives an empty string.
    """
    lines: list[str] = []
    for start in range(0, len(messages), SLICE_SIZE):
        line = _group_line(messages[start : start + SLICE_SIZE])
        if line is not None:
            lines.append(line)

    summary = "\n".join(lines)
    if len(summary) > MAX_SUMMARY_LENGTH:
        return summary[:MAX_SUMMARY_LENGTH] + ELLIPSIS
    return summary


def update_chat_summary(chat: Chat) -> Chat:
    """
    Recompute ``chat.summary`` and move the watermark to the last message.

    The watermark is assigned, not incremented, so calling this twice with
    the same messages leaves the chat unchanged. It never moves backwards.

    Args:
        chat: Chat to update in place

    Returns:
        The same chat instance
    """
    if not chat.messages:
        return chat

    new_index = len(chat.messages) - 1
    if chat.last_summarized_index is not None and new_index < chat.last_summarized_index:
        # Messages were deleted since the last summary; keep the old watermark.
        _LOG.debug(
            "Chat %s: not rewinding summary watermark %d -> %d",
            chat.id, chat.last_summarized_index, new_index,
        )
        return chat

    chat.summary = generate_summary(chat.messages)
    chat.last_summarized_index = new_index
    chat.updated_at = utcnow()
    _LOG.info(
        "Chat %s: summary updated through message %d (%d chars)",
        chat.id, new_index, len(chat.summary),
    )
    return chat
