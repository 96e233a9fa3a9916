"""Image analysis through an OpenRouter vision model."""
from __future__ import annotations

import logging
from collections.abc import Sequence

from openai import APIConnectionError, APIError, AsyncOpenAI, RateLimitError

from visionchat import settings
from visionchat.errors import VisionError
from visionchat.models import Message
from visionchat.text_generators.openrouter import get_openrouter_client

from .base import VisionAnalyzerAPI, build_vision_prompt

_LOG = logging.getLogger(__name__)


class OpenRouterVisionAnalyzer(VisionAnalyzerAPI):
    """Sends the prompt and an ``image_url`` content block as one user turn."""

    name = "openrouter"

    def __init__(self, model: str | None = None, max_tokens: int = 2048) -> None:
        self.model = model or settings.OPENROUTER_VISION_MODEL
        self.max_tokens = max_tokens

    def _get_client(self) -> AsyncOpenAI:
        return get_openrouter_client()

    async def analyze(
        self,
        image_url: str,
        question: str | None = None,
        history: Sequence[Message] | None = None,
        *,
        session_id: str | None = None,
    ) -> str:
        content = [
            {"type": "text", "text": build_vision_prompt(question, history)},
            {"type": "image_url", "image_url": {"url": image_url}},
        ]
        try:
            client = self._get_client()
            resp = await client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": content}],  # type: ignore[arg-type]
                max_tokens=self.max_tokens,
            )
        except ValueError as e:
            raise VisionError(str(e)) from e
        except RateLimitError as e:
            _LOG.warning("OpenRouter vision rate limit hit for model %s: %s", self.model, e)
            raise VisionError(str(e), status=429) from e
        except APIConnectionError as e:
            _LOG.error("OpenRouter vision connection error for model %s: %s", self.model, e)
            raise VisionError(str(e)) from e
        except APIError as e:
            status = getattr(e, "status_code", None)
            _LOG.error("OpenRouter vision API error for model %s (status %s): %s", self.model, status, e)
            raise VisionError(str(e), status=status) from e

        text = (resp.choices[0].message.content or "").strip() if resp.choices else ""
        if not text:
            raise VisionError("OpenRouter returned an empty description", details=resp)
        return text
