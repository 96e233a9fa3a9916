# text_generators/openrouter.py
from __future__ import annotations

import logging
from collections.abc import Sequence

from openai import APIConnectionError, APIError, AsyncOpenAI, RateLimitError

from visionchat import settings
from visionchat.errors import GenerationError
from visionchat.models import ContextEntry

from .base import Completion, TextGeneratorAPI, TokenUsage

_CLIENT_CACHE: dict[str, AsyncOpenAI] = {}
_LOG = logging.getLogger(__name__)


def get_openrouter_client() -> AsyncOpenAI:
    """Get or create the shared OpenRouter client."""
    if "openrouter" not in _CLIENT_CACHE:
        api_key = settings.openrouter_api_key()
        if not api_key:
            raise ValueError("OPENROUTER_API_KEY environment variable is required for OpenRouter")
        _CLIENT_CACHE["openrouter"] = AsyncOpenAI(
            api_key=api_key,
            base_url=settings.OPENROUTER_BASE_URL,
        )
    return _CLIENT_CACHE["openrouter"]


class OpenRouterTextGenerator(TextGeneratorAPI):
    """Text-generation backend for OpenRouter models (chat completions).

    Uses OpenRouter's OpenAI-compatible API, so context entries are passed
    through as chat messages unchanged.
    Requires OPENROUTER_API_KEY in the environment.
    """

    def __init__(self, model: str = "meta-llama/llama-3.1-405b-instruct") -> None:
        self.model = model

    def _get_client(self) -> AsyncOpenAI:
        return get_openrouter_client()

    async def generate(
        self,
        entries: Sequence[ContextEntry],
        *,
        temperature: float = 0.7,
        max_tokens: int = 4096,
    ) -> Completion:
        """Generate a reply using OpenRouter's chat completions API."""
        messages = [{"role": e["role"], "content": e["content"]} for e in entries]
        _LOG.debug("OpenRouter: generating with model=%s, messages=%d", self.model, len(messages))

        try:
            client = self._get_client()
            resp = await client.chat.completions.create(
                model=self.model,
                messages=messages,      # type: ignore[arg-type]
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except ValueError as e:
            _LOG.error("OpenRouter client unavailable: %s", e)
            raise GenerationError(str(e)) from e
        except RateLimitError as e:
            _LOG.warning("OpenRouter rate limit hit for model %s: %s", self.model, e)
            raise GenerationError(str(e), status=429) from e
        except APIConnectionError as e:
            _LOG.error("OpenRouter connection error for model %s: %s", self.model, e)
            raise GenerationError(str(e)) from e
        except APIError as e:
            status = getattr(e, "status_code", None)
            _LOG.error("OpenRouter API error for model %s (status %s): %s", self.model, status, e)
            raise GenerationError(str(e), status=status) from e

        if not resp.choices:
            raise GenerationError("OpenRouter returned no choices", details=resp)

        choice = resp.choices[0]
        content = (choice.message.content or "").strip()

        _LOG.info(
            "OpenRouter result: finish_reason=%s, content_len=%d",
            getattr(choice, "finish_reason", None), len(content),
        )

        usage = getattr(resp, "usage", None)
        if usage is not None:
            token_usage = TokenUsage(usage.prompt_tokens or 0, usage.completion_tokens or 0)
        else:
            token_usage = TokenUsage.estimate("".join(m["content"] for m in messages), content)
        return Completion(content=content, usage=token_usage)
