"""Image analysis through the NekoLabs GPT-5 endpoint."""
from __future__ import annotations

import logging
import time
from collections.abc import Sequence

from visionchat import settings
from visionchat.errors import RemoteAPIError, VisionError
from visionchat.http_utils import get_json
from visionchat.models import Message

from .base import VisionAnalyzerAPI, build_vision_prompt

_LOG = logging.getLogger(__name__)


class NekoLabsVisionAnalyzer(VisionAnalyzerAPI):
    name = "nekolabs"

    def __init__(self, *, base_url: str | None = None, path: str | None = None, timeout: float | None = None) -> None:
        self.url = (base_url or settings.NEKOLABS_BASE_URL).rstrip("/") + (path or settings.NEKOLABS_IMAGE_ANALYSIS_PATH)
        self.timeout = timeout if timeout is not None else settings.VISION_TIMEOUT

    async def analyze(
        self,
        image_url: str,
        question: str | None = None,
        history: Sequence[Message] | None = None,
        *,
        session_id: str | None = None,
    ) -> str:
        params = {
            "text": build_vision_prompt(question, history),
            "imageUrl": image_url,
            "sessionId": session_id or f"chat-{int(time.time() * 1000)}",
        }
        try:
            data = await get_json(self.url, params=params, timeout=self.timeout)
        except RemoteAPIError as e:
            raise VisionError(str(e), status=e.status, details=e.details) from e

        if not (data.get("success") or data.get("result")):
            raise VisionError(str(data.get("message") or "API returned unsuccessful response"), details=data)

        description = data.get("result") or data.get("message") or data.get("description")
        if not description:
            raise VisionError("API returned no description", details=data)

        _LOG.info("NekoLabs vision: description_len=%d", len(str(description)))
        return str(description)
