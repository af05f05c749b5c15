"""
Build the provider chains from settings.

Called once at startup; the resulting descriptors are shared read-only by
every request.
"""
import logging
from typing import Callable, Optional

from .adapters import (
    GeminiChatAdapter,
    GeminiImageAdapter,
    OpenAIChatAdapter,
    OpenAIImageAdapter,
    ProviderAdapter,
)
from .config import Settings
from .orchestrator import ProviderDescriptor
from .retry import RetryPolicy

logger = logging.getLogger(__name__)


XAI_CHAT_URL = "https://api.x.ai/v1/chat/completions"
XAI_IMAGE_URL = "https://api.x.ai/v1/images/generations"
OPENAI_CHAT_URL = "https://api.openai.com/v1/chat/completions"
OPENAI_IMAGE_URL = "https://api.openai.com/v1/images/generations"

OPENAI_MODEL_PREFIXES = ("gpt", "o1", "o3", "o4", "chatgpt")

AdapterFactory = Callable[[Settings], tuple[ProviderAdapter, Optional[str]]]


CHAT_ADAPTERS: dict[str, AdapterFactory] = {
    "xai": lambda s: (
        OpenAIChatAdapter(
            "xai",
            endpoint=XAI_CHAT_URL,
            default_model=s.xai_chat_model,
            model_prefixes=("grok",),
        ),
        s.xai_api_key,
    ),
    "openai": lambda s: (
        OpenAIChatAdapter(
            "openai",
            endpoint=OPENAI_CHAT_URL,
            default_model=s.openai_chat_model,
            model_prefixes=OPENAI_MODEL_PREFIXES,
        ),
        s.openai_api_key,
    ),
    "gemini": lambda s: (
        GeminiChatAdapter("gemini", default_model=s.gemini_chat_model),
        s.gemini_api_key,
    ),
}

IMAGE_ADAPTERS: dict[str, AdapterFactory] = {
    # xAI's image endpoint rejects `size` but accepts extra OpenAI fields
    "grok": lambda s: (
        OpenAIImageAdapter(
            "grok",
            endpoint=XAI_IMAGE_URL,
            default_model=s.grok_image_model,
            model_prefixes=("grok",),
            supports_size=False,
            response_format=None,
            forwards_extra=True,
        ),
        s.xai_api_key,
    ),
    "openai": lambda s: (
        OpenAIImageAdapter(
            "openai",
            endpoint=OPENAI_IMAGE_URL,
            default_model=s.openai_image_model,
        ),
        s.openai_api_key,
    ),
    "gemini": lambda s: (
        GeminiImageAdapter("gemini", default_model=s.gemini_image_model),
        s.gemini_api_key,
    ),
}


def _build(
    chain: str,
    names: list[str],
    factories: dict[str, AdapterFactory],
    settings: Settings,
) -> list[ProviderDescriptor]:
    unknown = [name for name in names if name not in factories]
    if unknown:
        raise ValueError(
            f"Unknown provider(s) {unknown}; expected any of {sorted(factories)}"
        )

    descriptors = []
    for name in names:
        policy = RetryPolicy(
            attempts=settings.retry_attempts_for(chain, name),
            base_delay_ms=settings.retry_base_delay_ms,
        )
        adapter, api_key = factories[name](settings)
        descriptors.append(ProviderDescriptor(
            adapter=adapter,
            api_key=api_key,
            retry_policy=policy,
            timeout=settings.upstream_timeout_seconds,
        ))
        if not api_key:
            logger.warning("Provider %s has no credential - it will be skipped", name)
    return descriptors


def build_chat_providers(settings: Settings) -> list[ProviderDescriptor]:
    """Ordered chat chain from CHAT_PROVIDERS."""
    return _build("chat", settings.chat_provider_names, CHAT_ADAPTERS, settings)


def build_image_providers(settings: Settings) -> list[ProviderDescriptor]:
    """Ordered image chain from IMAGE_PROVIDERS."""
    return _build("image", settings.image_provider_names, IMAGE_ADAPTERS, settings)
