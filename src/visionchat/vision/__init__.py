"""Image description backends."""
from __future__ import annotations

import logging
from collections.abc import Sequence

from visionchat import settings
from visionchat.errors import VisionError
from visionchat.models import Message

from .base import DEFAULT_QUESTION, VisionAnalyzerAPI, build_vision_prompt
from .nekolabs import NekoLabsVisionAnalyzer
from .openrouter import OpenRouterVisionAnalyzer

__all__ = [
    "DEFAULT_QUESTION",
    "VisionAnalyzerAPI",
    "build_vision_prompt",
    "NekoLabsVisionAnalyzer",
    "OpenRouterVisionAnalyzer",
    "FallbackVisionAnalyzer",
    "get_vision_analyzer",
]

_LOG = logging.getLogger(__name__)


class FallbackVisionAnalyzer(VisionAnalyzerAPI):
    """Try each analyzer in turn; fail only when every one has failed."""

    name = "fallback"

    def __init__(self, analyzers: Sequence[VisionAnalyzerAPI]) -> None:
        if not analyzers:
            raise ValueError("FallbackVisionAnalyzer needs at least one analyzer")
        self.analyzers = list(analyzers)

    async def analyze(
        self,
        image_url: str,
        question: str | None = None,
        history: Sequence[Message] | None = None,
        *,
        session_id: str | None = None,
    ) -> str:
        errors: list[VisionError] = []
        for analyzer in self.analyzers:
            try:
                return await analyzer.analyze(image_url, question, history, session_id=session_id)
            except VisionError as exc:
                _LOG.warning("Vision provider %s failed: %s", analyzer.name, exc)
                errors.append(exc)

        last = errors[-1]
        raise VisionError(f"Failed to analyze image: {last}", status=last.status, details=[str(e) for e in errors])


def get_vision_analyzer() -> VisionAnalyzerAPI:
    """NekoLabs first, then OpenRouter when an API key is configured."""
    analyzers: list[VisionAnalyzerAPI] = [NekoLabsVisionAnalyzer()]
    if settings.openrouter_api_key():
        analyzers.append(OpenRouterVisionAnalyzer())
    if len(analyzers) == 1:
        return analyzers[0]
    return FallbackVisionAnalyzer(analyzers)
