"""Tests for summary staleness checks and summary generation."""

from __future__ import annotations

import pytest

from visionchat.models import Chat, Message, ModelConfig
from visionchat.summarization import (
    MAX_SUMMARY_LENGTH,
    SLICE_SIZE,
    generate_summary,
    should_update_summary,
    update_chat_summary,
)


def _chat(messages: list[Message]) -> Chat:
    return Chat(model_config=ModelConfig(model="nekolabs-gpt5mini", provider="nekolabs"), messages=messages)


class TestShouldUpdateSummary:
    """Tests for the staleness threshold."""

    @pytest.mark.parametrize(
        ("count", "watermark", "expected"),
        [
            (0, None, False),
            (9, None, False),
            (10, None, True),
            (11, None, True),
            (14, 4, False),
            (15, 4, True),
            (19, 9, False),
            (20, 9, True),
            (5, 9, False),
        ],
    )
    def test_threshold(self, count, watermark, expected):
        assert should_update_summary(count, watermark) is expected

    def test_default_watermark_is_none(self):
        """Calling without a watermark uses the unwatermarked rule."""
        assert should_update_summary(SLICE_SIZE) is True


class TestGenerateSummary:
    """Tests for the topic-line summary."""

    def test_empty_input(self):
        """No messages gives an empty summary."""
        assert generate_summary([]) == ""

    def test_user_messages_only(self):
        """Assistant content is left out; user content is joined by '; '."""
        messages = [
            Message(role="user", content="hello world"),
            Message(role="assistant", content="reply"),
            Message(role="user", content="second question"),
        ]
        summary = generate_summary(messages)
        assert summary == "Topics discussed: hello world; second question"
        assert "reply" not in summary

    def test_user_content_cut_to_100_chars(self):
        """Each topic keeps only the first 100 characters."""
        messages = [Message(role="user", content="q" * 250)]
        assert generate_summary(messages) == "Topics discussed: " + "q" * 100

    def test_one_line_per_group(self):
        """Every SLICE_SIZE messages produce their own line."""
        messages = [Message(role="user", content=f"topic {i}") for i in range(SLICE_SIZE + 2)]
        lines = generate_summary(messages).split("\n")
        assert len(lines) == 2
        assert lines[0].startswith("Topics discussed: topic 0; topic 1")
        assert lines[0].endswith(f"topic {SLICE_SIZE - 1}")
        assert lines[1] == f"Topics discussed: topic {SLICE_SIZE}; topic {SLICE_SIZE + 1}"

    def test_assistant_only_group_adds_no_line(self):
        """A group without user turns contributes nothing."""
        messages = [Message(role="assistant", content="a") for _ in range(SLICE_SIZE)]
        messages.append(Message(role="user", content="finally"))
        assert generate_summary(messages) == "Topics discussed: finally"

    def test_system_messages_ignored(self):
        messages = [Message(role="system", content="be nice"), Message(role="user", content="hi")]
        assert generate_summary(messages) == "Topics discussed: hi"

    def test_length_cap(self):
        """Long summaries are cut to the cap plus an ellipsis."""
        messages = [Message(role="user", content="x" * 100) for _ in range(5 * SLICE_SIZE)]
        summary = generate_summary(messages)
        assert len(summary) == MAX_SUMMARY_LENGTH + 3
        assert summary.endswith("...")
        assert summary.startswith("Topics discussed: xxx")

    def test_deterministic(self):
        messages = [Message(role="user", content=f"t{i}") for i in range(23)]
        assert generate_summary(messages) == generate_summary(messages)


class TestUpdateChatSummary:
    """Tests for applying a summary to a chat."""

    def test_sets_summary_and_watermark(self, make_messages):
        chat = _chat(make_messages(10))
        update_chat_summary(chat)
        assert chat.last_summarized_index == 9
        assert chat.summary == generate_summary(chat.messages)

    def test_returns_same_chat(self, make_messages):
        chat = _chat(make_messages(3))
        assert update_chat_summary(chat) is chat

    def test_idempotent(self, make_messages):
        """Running twice without an append changes nothing."""
        chat = _chat(make_messages(12))
        update_chat_summary(chat)
        first = (chat.summary, chat.last_summarized_index)
        update_chat_summary(chat)
        assert (chat.summary, chat.last_summarized_index) == first

    def test_watermark_only_moves_forward(self, make_messages):
        """Watermarks from successive updates never decrease."""
        chat = _chat([])
        seen: list[int] = []
        for message in make_messages(35):
            chat.messages.append(message)
            if should_update_summary(len(chat.messages), chat.last_summarized_index):
                update_chat_summary(chat)
                seen.append(chat.last_summarized_index)
        assert seen == [9, 19, 29]

    def test_does_not_rewind_after_deletion(self, make_messages):
        """Deleting messages never pulls the watermark back."""
        chat = _chat(make_messages(12))
        update_chat_summary(chat)
        del chat.messages[-5:]
        update_chat_summary(chat)
        assert chat.last_summarized_index == 11

    def test_empty_chat_left_alone(self):
        chat = _chat([])
        update_chat_summary(chat)
        assert chat.summary is None
        assert chat.last_summarized_index is None
