"""
Provider adapters: one class per upstream schema family.
"""
from .base import ChatAdapter, ImageAdapter, ProviderAdapter
from .gemini import GeminiChatAdapter, GeminiImageAdapter
from .openai_compat import OpenAIChatAdapter, OpenAIImageAdapter

__all__ = [
    "ProviderAdapter",
    "ChatAdapter",
    "ImageAdapter",
    "OpenAIChatAdapter",
    "OpenAIImageAdapter",
    "GeminiChatAdapter",
    "GeminiImageAdapter",
]
