"""Turn orchestration: append, summarize, build context, call, append reply."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence

from visionchat.chat_store import DEFAULT_TITLE, ChatStore
from visionchat.errors import GenerationError, VisionError
from visionchat.models import Chat, ContextEntry, ImageAttachment, Message, estimate_token_count
from visionchat.settings import get_model_info
from visionchat.summarization import build_context
from visionchat.text_generators import TextGeneratorAPI, get_text_generator
from visionchat.vision import VisionAnalyzerAPI, get_vision_analyzer

_LOG = logging.getLogger(__name__)

IMAGE_REPLY_PREFIX = "📸 **Image Analysis Result:**\n\n"


class ChatBusyError(RuntimeError):
    """A reply is already being generated for this chat."""


class ChatService:
    """Runs chat turns against a :class:`ChatStore`.

    At most one remote call is in flight per chat. A reply that arrives after
    the user edited or deleted messages is still appended.
    """

    def __init__(
        self,
        store: ChatStore,
        *,
        generator_factory: Callable[[str], TextGeneratorAPI] = get_text_generator,
        vision: VisionAnalyzerAPI | None = None,
    ) -> None:
        self.store = store
        self.generator_factory = generator_factory
        self._vision = vision
        self._generating: set[str] = set()

    @property
    def vision(self) -> VisionAnalyzerAPI:
        if self._vision is None:
            self._vision = get_vision_analyzer()
        return self._vision

    def is_generating(self, chat_id: str) -> bool:
        return chat_id in self._generating

    @staticmethod
    def build_request(
        chat: Chat,
        history: Sequence[Message],
        summary: str | None,
        last_summarized_index: int | None,
        content: str,
    ) -> list[ContextEntry]:
        """System prompt, then the windowed context, then the outgoing turn."""
        entries: list[ContextEntry] = []
        if chat.model_config.system_prompt:
            entries.append({"role": "system", "content": chat.model_config.system_prompt})
        entries.extend(build_context(history, summary, last_summarized_index))
        entries.append({"role": "user", "content": content})
        return entries

    async def send_message(
        self,
        chat_id: str,
        content: str,
        images: list[ImageAttachment] | None = None,
        *,
        skip_user_message: bool = False,
        parent_id: str | None = None,
    ) -> Message:
        """
        Send one user turn and append the model's reply.

        Args:
            chat_id: Target chat
            content: The user's text
            images: Attachments; the first one is sent for image analysis
            skip_user_message: The user message is already in the chat
                (edit and regenerate flows)
            parent_id: Id of the reply this one replaces

        Returns:
            The appended assistant message

        Raises:
            ValueError: empty content and no images
            ChatBusyError: a reply is already pending for this chat
            GenerationError, VisionError: the remote call failed; nothing
                is appended
        """
        chat = self.store.get_chat(chat_id)
        if not content.strip() and not images:
            raise ValueError("Please enter a message or attach images")
        if chat_id in self._generating:
            raise ChatBusyError(f"Chat {chat_id} is already generating a reply")

        # Context is built from the history as it was before this turn.
        history = list(chat.messages)
        if skip_user_message and history and history[-1].role == "user":
            history.pop()
        summary = chat.summary
        watermark = chat.last_summarized_index
        had_reply = any(m.role == "assistant" for m in history)

        if not skip_user_message:
            self.store.add_message(
                chat_id, "user", content, images=images, tokens=estimate_token_count(content)
            )

        self._generating.add(chat_id)
        try:
            if images:
                description = await self.vision.analyze(
                    images[0].url, content, history, session_id=chat_id
                )
                reply = IMAGE_REPLY_PREFIX + description
                tokens = estimate_token_count(reply)
            else:
                config = chat.model_config
                entries = self.build_request(chat, history, summary, watermark, content)
                generator = self.generator_factory(config.model)
                _LOG.info("Chat %s: sending %d context entries to %s", chat_id, len(entries), config.model)
                completion = await generator.generate(
                    entries, temperature=config.temperature, max_tokens=config.max_tokens
                )
                reply = completion.content
                tokens = completion.usage.completion_tokens or estimate_token_count(reply)
        except (GenerationError, VisionError) as exc:
            _LOG.warning("Chat %s: reply failed: %s", chat_id, exc)
            raise
        finally:
            self._generating.discard(chat_id)

        message = self.store.add_message(chat_id, "assistant", reply, tokens=tokens, parent_id=parent_id)

        if not had_reply and chat.title == DEFAULT_TITLE:
            self.store.auto_rename_chat(chat_id, content)

        return message

    async def regenerate(self, chat_id: str, message_id: str, model: str | None = None) -> Message:
        """Replace an assistant reply, optionally with a different model."""
        chat = self.store.get_chat(chat_id)
        index = chat.find_message_index(message_id)
        if index == -1 or chat.messages[index].role != "assistant":
            raise ValueError("Can only regenerate assistant messages")
        if index == 0 or chat.messages[index - 1].role != "user":
            raise ValueError("Reply has no preceding user message")

        user_message = chat.messages[index - 1]
        if model and model != chat.model_config.model:
            info = get_model_info(model)
            self.store.update_model_config(chat_id, model=info.key, provider=info.provider.value)
            _LOG.info("Chat %s: regenerating with %s", chat_id, info.key)

        self.store.delete_message(chat_id, message_id)
        return await self.send_message(
            chat_id,
            user_message.content,
            user_message.images,
            skip_user_message=True,
            parent_id=message_id,
        )

    async def edit_message(self, chat_id: str, message_id: str, content: str) -> Message:
        """Edit a user message, drop the reply that followed it and ask again."""
        chat = self.store.get_chat(chat_id)
        index = chat.find_message_index(message_id)
        if index == -1 or chat.messages[index].role != "user":
            raise ValueError("Can only edit user messages")

        edited = self.store.update_message(chat_id, message_id, content)
        next_index = index + 1
        if next_index < len(chat.messages) and chat.messages[next_index].role == "assistant":
            self.store.delete_message(chat_id, chat.messages[next_index].id)

        return await self.send_message(chat_id, content, edited.images, skip_user_message=True)
