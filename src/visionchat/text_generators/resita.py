# text_generators/resita.py
"""Text-generation backend for the Resita single-prompt API."""
from __future__ import annotations

import logging
from collections.abc import Sequence

from visionchat import settings
from visionchat.errors import GenerationError, RemoteAPIError
from visionchat.http_utils import get_json
from visionchat.models import ContextEntry

from .base import Completion, TextGeneratorAPI, TokenUsage, render_transcript

_LOG = logging.getLogger(__name__)


class ResitaTextGenerator(TextGeneratorAPI):
    """Resita serves every ``resita-*`` model from one GET endpoint.

    The whole context is flattened into a single ``prompt`` query parameter.
    Sampling parameters are not supported by the API and are ignored.
    Requires RESITA_API_KEY in the environment.
    """

    def __init__(self, model: str = "resita-chatgpt", *, base_url: str | None = None, timeout: float | None = None) -> None:
        self.model = model
        self.base_url = base_url or settings.RESITA_BASE_URL
        self.timeout = timeout if timeout is not None else settings.REQUEST_TIMEOUT

    async def generate(
        self,
        entries: Sequence[ContextEntry],
        *,
        temperature: float = 0.7,
        max_tokens: int = 4096,
    ) -> Completion:
        prompt = render_transcript(entries)
        _LOG.debug("Resita: model=%s, entries=%d, prompt_len=%d", self.model, len(entries), len(prompt))

        try:
            data = await get_json(
                self.base_url,
                params={"prompt": prompt, "apikey": settings.resita_api_key()},
                timeout=self.timeout,
            )
        except RemoteAPIError as e:
            _LOG.error("Resita API error for model %s (status %s): %s", self.model, e.status, e)
            raise GenerationError(str(e), status=e.status, details=e.details) from e

        message = data.get("message")
        if not data.get("success") or not isinstance(message, str) or not message:
            _LOG.error("Resita unsuccessful response for model %s: %s", self.model, data)
            raise GenerationError(
                message if isinstance(message, str) and message else "API returned unsuccessful response",
                details=data,
            )

        _LOG.info("Resita result: model=%s, content_len=%d", self.model, len(message))
        return Completion(content=message, usage=TokenUsage.estimate(prompt, message))
