"""Context windowing and running summaries for long conversations."""

from .context_builder import (
    MAX_MESSAGE_CHARS,
    RECENT_COUNT,
    build_context,
    format_context_preview,
    format_summary_entry,
)
from .scheduler import (
    MAX_SUMMARY_LENGTH,
    SLICE_SIZE,
    generate_summary,
    should_update_summary,
    update_chat_summary,
)

__all__ = [
    "MAX_MESSAGE_CHARS",
    "RECENT_COUNT",
    "build_context",
    "format_context_preview",
    "format_summary_entry",
    "MAX_SUMMARY_LENGTH",
    "SLICE_SIZE",
    "generate_summary",
    "should_update_summary",
    "update_chat_summary",
]
