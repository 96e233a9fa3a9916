"""Tests for the image analysis backends."""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest

from visionchat.errors import RemoteAPIError, VisionError
from visionchat.models import Message
from visionchat.vision import (
    DEFAULT_QUESTION,
    FallbackVisionAnalyzer,
    NekoLabsVisionAnalyzer,
    OpenRouterVisionAnalyzer,
    VisionAnalyzerAPI,
    build_vision_prompt,
    get_vision_analyzer,
)

IMAGE = "https://img.example/cat.png"


class StaticAnalyzer(VisionAnalyzerAPI):
    def __init__(self, name, result=None, error=None):
        self.name = name
        self.result = result
        self.error = error
        self.calls = 0

    async def analyze(self, image_url, question=None, history=None, *, session_id=None):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.result


class TestBuildVisionPrompt:
    """Tests for the question sent alongside an image."""

    def test_default_question(self):
        assert build_vision_prompt("  ") == DEFAULT_QUESTION

    def test_question_only(self):
        assert build_vision_prompt("What breed?") == "What breed?"

    def test_recent_history_included(self):
        history = [Message(role="user" if i % 2 == 0 else "assistant", content=f"m{i}") for i in range(7)]
        prompt = build_vision_prompt("What breed?", history)
        lines = prompt.split("\n")
        assert lines[0] == "Previous conversation:"
        assert lines[1:6] == ["User: m2", "AI: m3", "User: m4", "AI: m5", "User: m6"]
        assert lines[-1] == "Current question: What breed?"

    def test_long_history_truncated(self):
        prompt = build_vision_prompt("q", [Message(role="user", content="x" * 300)])
        assert "User: " + "x" * 200 + "..." in prompt


class TestNekoLabsVision:
    """Tests for the NekoLabs analyzer."""

    @pytest.mark.asyncio
    async def test_request_params(self):
        mock_get = AsyncMock(return_value={"success": True, "result": "A tabby cat."})
        analyzer = NekoLabsVisionAnalyzer(base_url="https://neko.test", path="/ai/gpt/5")

        with patch("visionchat.vision.nekolabs.get_json", mock_get):
            result = await analyzer.analyze(IMAGE, "What is it?", session_id="chat-1")

        assert result == "A tabby cat."
        args, kwargs = mock_get.call_args
        assert args[0] == "https://neko.test/ai/gpt/5"
        assert kwargs["params"] == {"text": "What is it?", "imageUrl": IMAGE, "sessionId": "chat-1"}

    @pytest.mark.asyncio
    async def test_generated_session_id(self):
        mock_get = AsyncMock(return_value={"success": True, "result": "ok"})
        with patch("visionchat.vision.nekolabs.get_json", mock_get):
            await NekoLabsVisionAnalyzer().analyze(IMAGE)
        assert mock_get.call_args.kwargs["params"]["sessionId"].startswith("chat-")

    @pytest.mark.asyncio
    async def test_unsuccessful(self):
        mock_get = AsyncMock(return_value={"success": False, "message": "bad image"})
        with patch("visionchat.vision.nekolabs.get_json", mock_get):
            with pytest.raises(VisionError, match="bad image"):
                await NekoLabsVisionAnalyzer().analyze(IMAGE)

    @pytest.mark.asyncio
    async def test_transport_error(self):
        mock_get = AsyncMock(side_effect=RemoteAPIError("timed out"))
        with patch("visionchat.vision.nekolabs.get_json", mock_get):
            with pytest.raises(VisionError, match="timed out"):
                await NekoLabsVisionAnalyzer().analyze(IMAGE)


class TestFallback:
    """Tests for trying analyzers in order."""

    @pytest.mark.asyncio
    async def test_first_success_wins(self):
        first = StaticAnalyzer("a", result="first")
        second = StaticAnalyzer("b", result="second")
        assert await FallbackVisionAnalyzer([first, second]).analyze(IMAGE) == "first"
        assert second.calls == 0

    @pytest.mark.asyncio
    async def test_falls_through_on_error(self):
        first = StaticAnalyzer("a", error=VisionError("down"))
        second = StaticAnalyzer("b", result="second")
        assert await FallbackVisionAnalyzer([first, second]).analyze(IMAGE) == "second"

    @pytest.mark.asyncio
    async def test_all_fail(self):
        analyzers = [
            StaticAnalyzer("a", error=VisionError("down")),
            StaticAnalyzer("b", error=VisionError("rate limited", status=429)),
        ]
        with pytest.raises(VisionError, match="Failed to analyze image: rate limited") as excinfo:
            await FallbackVisionAnalyzer(analyzers).analyze(IMAGE)
        assert excinfo.value.status == 429

    def test_needs_an_analyzer(self):
        with pytest.raises(ValueError):
            FallbackVisionAnalyzer([])


class TestGetVisionAnalyzer:
    def test_nekolabs_only_without_key(self, monkeypatch):
        monkeypatch.delenv("OPENROUTER_API_KEY", raising=False)
        assert isinstance(get_vision_analyzer(), NekoLabsVisionAnalyzer)

    def test_openrouter_fallback_with_key(self, monkeypatch):
        monkeypatch.setenv("OPENROUTER_API_KEY", "secret")
        analyzer = get_vision_analyzer()
        assert isinstance(analyzer, FallbackVisionAnalyzer)
        assert [type(a) for a in analyzer.analyzers] == [NekoLabsVisionAnalyzer, OpenRouterVisionAnalyzer]
