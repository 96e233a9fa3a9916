"""Configuration: environment-driven endpoints, the model catalog and the
default system prompt.

Secrets (API keys) come from the environment (``.env`` is loaded by the
CLI). Stable, non-secret values such as the model list live here.
"""

from __future__ import annotations

import enum
import logging
import os
from dataclasses import dataclass
from pathlib import Path

from visionchat.models import ModelConfig

_LOG = logging.getLogger(__name__)


# --------------------- Remote endpoints ---------------------

RESITA_BASE_URL: str = os.getenv("RESITA_BASE_URL", "https://api.ferdev.my.id/ai/aicoding")
NEKOLABS_BASE_URL: str = os.getenv("NEKOLABS_BASE_URL", "https://api.nekolabs.my.id")
NEKOLABS_IMAGE_ANALYSIS_PATH: str = os.getenv("NEKOLABS_IMAGE_ANALYSIS_PATH", "/ai/gpt/5")
OPENROUTER_BASE_URL: str = os.getenv("OPENROUTER_BASE_URL", "https://openrouter.ai/api/v1")
OPENROUTER_VISION_MODEL: str = os.getenv("OPENROUTER_VISION_MODEL", "google/gemini-2.0-flash-exp:free")

# Seconds
REQUEST_TIMEOUT: float = float(os.getenv("VISIONCHAT_REQUEST_TIMEOUT", "30"))
VISION_TIMEOUT: float = float(os.getenv("VISIONCHAT_VISION_TIMEOUT", "60"))

# Per-user directory for the chat database and the system prompt file
DATA_DIR = Path(os.getenv("VISIONCHAT_HOME", "~/.visionchat")).expanduser()
DB_PATH = Path(os.getenv("VISIONCHAT_DB_PATH", str(DATA_DIR / "chats.db"))).expanduser()


def resita_api_key() -> str:
    return os.getenv("RESITA_API_KEY", "")


def openrouter_api_key() -> str:
    return os.getenv("OPENROUTER_API_KEY", "")


# --------------------- Model catalog ---------------------


class Provider(str, enum.Enum):
    """Backend that serves a model."""

    RESITA = "resita"
    NEKOLABS = "nekolabs"
    OPENROUTER = "openrouter"

    @property
    def label(self) -> str:
        return _PROVIDER_LABELS[self]


_PROVIDER_LABELS = {
    Provider.RESITA: "Resita AI",
    Provider.NEKOLABS: "NekoLabs AI",
    Provider.OPENROUTER: "OpenRouter",
}


@dataclass(frozen=True)
class ModelInfo:
    """Catalog entry for a selectable chat model.

    ``endpoint`` is the provider-specific route (NekoLabs) or upstream model
    id (OpenRouter); Resita serves every model from one URL.
    """

    key: str
    name: str
    provider: Provider
    context_window: int
    endpoint: str | None = None


AI_MODELS: dict[str, ModelInfo] = {
    m.key: m
    for m in (
        ModelInfo("resita-aicoding", "AI Coding", Provider.RESITA, 128_000),
        ModelInfo("resita-claude", "Claude AI", Provider.RESITA, 200_000),
        ModelInfo("resita-chatgpt", "ChatGPT 4", Provider.RESITA, 128_000),
        ModelInfo("resita-felo", "Felo AI", Provider.RESITA, 32_000),
        ModelInfo("resita-gemini", "Gemini", Provider.RESITA, 1_000_000),
        ModelInfo("resita-gptlogic", "GPT Logic", Provider.RESITA, 32_000),
        ModelInfo("resita-venice", "Venice AI", Provider.RESITA, 32_000),
        ModelInfo("nekolabs-gpt4o", "GPT-4o", Provider.NEKOLABS, 128_000, "/ai/gpt/4o"),
        ModelInfo("nekolabs-gpt41", "GPT-4.1", Provider.NEKOLABS, 128_000, "/ai/gpt/4.1"),
        ModelInfo("nekolabs-gpt5mini", "GPT-5 Mini", Provider.NEKOLABS, 128_000, "/ai/gpt/5-mini"),
        ModelInfo("nekolabs-gpt5nano", "GPT-5 Nano", Provider.NEKOLABS, 128_000, "/ai/gpt/5-nano"),
        ModelInfo(
            "openrouter-gemini-flash",
            "Gemini 2.0 Flash",
            Provider.OPENROUTER,
            1_000_000,
            "google/gemini-2.0-flash-exp:free",
        ),
        ModelInfo(
            "openrouter-llama-405b",
            "Llama 3.1 405B Instruct",
            Provider.OPENROUTER,
            128_000,
            "meta-llama/llama-3.1-405b-instruct",
        ),
    )
}

DEFAULT_MODEL: str = os.getenv("VISIONCHAT_DEFAULT_MODEL", "nekolabs-gpt5mini")


def get_model_info(key: str) -> ModelInfo:
    """Return the catalog entry for *key*."""
    try:
        return AI_MODELS[key]
    except KeyError:
        raise ValueError(f"Unknown model: {key}") from None


def grouped_models() -> list[tuple[str, list[ModelInfo]]]:
    """Catalog grouped by provider label, in catalog order."""
    groups: dict[Provider, list[ModelInfo]] = {}
    for info in AI_MODELS.values():
        groups.setdefault(info.provider, []).append(info)
    return [(provider.label, models) for provider, models in groups.items()]


# --------------------- System prompt ---------------------

_FALLBACK_SYSTEM_PROMPT: str = (
    "You are a helpful AI assistant with vision capabilities. "
    "You can analyze images and provide detailed information about them."
)

# path -> (mtime, text)
_PROMPT_CACHE: dict[Path, tuple[float, str]] = {}


def system_prompt_file() -> Path:
    """VISIONCHAT_SYSTEM_PROMPT_FILE, else ``system_prompt.txt`` in the data directory."""
    configured = os.getenv("VISIONCHAT_SYSTEM_PROMPT_FILE", "").strip()
    if configured:
        return Path(configured).expanduser()
    return DATA_DIR / "system_prompt.txt"


def get_default_system_prompt() -> str:
    """Text of the system prompt file, re-read only when its mtime changes.

    A missing, unreadable or blank file gives the built-in prompt.
    """
    path = system_prompt_file()
    try:
        mtime = path.stat().st_mtime
    except OSError:
        return _FALLBACK_SYSTEM_PROMPT

    cached = _PROMPT_CACHE.get(path)
    if cached is not None and cached[0] == mtime:
        return cached[1]

    try:
        text = path.read_text(encoding="utf-8").strip()
    except (OSError, UnicodeDecodeError) as exc:
        _LOG.warning("Could not read system prompt %s: %s", path, exc)
        return _FALLBACK_SYSTEM_PROMPT

    prompt = text or _FALLBACK_SYSTEM_PROMPT
    _PROMPT_CACHE[path] = (mtime, prompt)
    _LOG.debug("Loaded system prompt from %s (%d chars)", path, len(prompt))
    return prompt


def default_model_config(model: str | None = None) -> ModelConfig:
    """Fresh generation settings for a new chat."""
    info = get_model_info(model or DEFAULT_MODEL)
    return ModelConfig(
        model=info.key,
        provider=info.provider.value,
        temperature=0.7,
        max_tokens=4096,
        system_prompt=get_default_system_prompt(),
    )
