# text_generators/__init__.py
from visionchat.settings import Provider, get_model_info

from .base import Completion, TextGeneratorAPI, TokenUsage, render_transcript
from .nekolabs import NekoLabsTextGenerator
from .openrouter import OpenRouterTextGenerator
from .resita import ResitaTextGenerator

__all__ = [
    "Completion",
    "TextGeneratorAPI",
    "TokenUsage",
    "render_transcript",
    "NekoLabsTextGenerator",
    "OpenRouterTextGenerator",
    "ResitaTextGenerator",
    "get_text_generator",
]


def get_text_generator(model: str) -> TextGeneratorAPI:
    """Return the backend serving catalog model *model*."""
    info = get_model_info(model)
    if info.provider is Provider.RESITA:
        return ResitaTextGenerator(info.key)
    if info.provider is Provider.NEKOLABS:
        return NekoLabsTextGenerator(info.endpoint or "", model=info.key)
    if info.provider is Provider.OPENROUTER:
        return OpenRouterTextGenerator(info.endpoint or info.key)
    raise ValueError(f"Unknown provider: {info.provider}")
