# text_generators/nekolabs.py
"""Text-generation backend for the NekoLabs GPT endpoints."""
from __future__ import annotations

import logging
from collections.abc import Sequence

from visionchat import settings
from visionchat.errors import GenerationError, RemoteAPIError
from visionchat.http_utils import get_json
from visionchat.models import ContextEntry

from .base import Completion, TextGeneratorAPI, TokenUsage, render_transcript

_LOG = logging.getLogger(__name__)


class NekoLabsTextGenerator(TextGeneratorAPI):
    """Each NekoLabs model lives at its own path (``/ai/gpt/4o`` ...).

    The context is flattened into the ``text`` query parameter. The reply
    arrives in ``result`` (with ``success``) or, on some endpoints, ``answer``.
    """

    def __init__(self, endpoint: str, *, model: str = "", base_url: str | None = None, timeout: float | None = None) -> None:
        self.endpoint = endpoint
        self.model = model or endpoint
        self.base_url = (base_url or settings.NEKOLABS_BASE_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.REQUEST_TIMEOUT

    async def generate(
        self,
        entries: Sequence[ContextEntry],
        *,
        temperature: float = 0.7,
        max_tokens: int = 4096,
    ) -> Completion:
        prompt = render_transcript(entries)
        url = f"{self.base_url}{self.endpoint}"
        _LOG.debug("NekoLabs: model=%s, entries=%d, prompt_len=%d", self.model, len(entries), len(prompt))

        try:
            data = await get_json(url, params={"text": prompt}, timeout=self.timeout)
        except RemoteAPIError as e:
            _LOG.error("NekoLabs API error for model %s (status %s): %s", self.model, e.status, e)
            raise GenerationError(str(e), status=e.status, details=e.details) from e

        if data.get("success") and data.get("result"):
            content = str(data["result"])
        elif data.get("answer"):
            content = str(data["answer"])
        else:
            _LOG.error("NekoLabs unexpected format for model %s: %s", self.model, data)
            raise GenerationError("API returned no answer or result", details=data)

        _LOG.info("NekoLabs result: model=%s, content_len=%d", self.model, len(content))
        return Completion(content=content, usage=TokenUsage.estimate(prompt, content))
