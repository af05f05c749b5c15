"""
Adapters for Google's Gemini `generateContent` API.

Gemini differs structurally from the OpenAI schema: system prompts go into a
dedicated `systemInstruction` slot, the assistant role is called `model`, and
sampling options live under `generationConfig`.
"""

from typing import Any
from urllib.parse import quote

from ..models import ChatRequest, ImageRequest
from .base import ChatAdapter, ImageAdapter


GEMINI_API_BASE = "https://generativelanguage.googleapis.com/v1beta"

GEMINI_ROLES = {"user": "user", "assistant": "model"}


class GeminiMixin:
    """URL and auth shared by the Gemini adapters."""

    endpoint = GEMINI_API_BASE
    model_prefixes = ("gemini",)

    def build_url(self, api_key: str, request) -> str:
        model = self.resolve_model(request.model)
        return f"{self.endpoint}/models/{quote(model, safe='')}:generateContent"

    def build_headers(self, api_key: str) -> dict[str, str]:
        return {
            "x-goog-api-key": api_key,
            "Content-Type": "application/json",
            "Accept": "application/json",
        }


class GeminiChatAdapter(GeminiMixin, ChatAdapter):
    """Chat completions via Gemini."""

    default_model = "gemini-2.0-flash"

    def to_provider_payload(self, request: ChatRequest) -> dict[str, Any]:
        system_texts = []
        contents = []

        for m in request.messages:
            if not m.content:
                continue
            if m.role == "system":
                system_texts.append(m.content)
                continue
            contents.append({
                "role": GEMINI_ROLES[m.role],
                "parts": [{"text": m.content}],
            })

        # A bare prompt is accepted when the conversation carries no turns
        prompt = request.extra.get("prompt")
        if not contents and isinstance(prompt, str) and prompt.strip():
            contents.append({"role": "user", "parts": [{"text": prompt.strip()}]})

        generation_config: dict[str, Any] = {}
        if request.temperature is not None:
            generation_config["temperature"] = request.temperature
        if request.top_p is not None:
            generation_config["topP"] = request.top_p
        if request.max_output_tokens is not None:
            generation_config["maxOutputTokens"] = request.max_output_tokens

        payload: dict[str, Any] = {
            "contents": contents,
            "generationConfig": generation_config,
        }
        if system_texts:
            payload["systemInstruction"] = {
                "parts": [{"text": "\n\n".join(system_texts)}],
            }
        return payload


class GeminiImageAdapter(GeminiMixin, ImageAdapter):
    """Image generation via Gemini's image-capable models. Takes no size."""

    default_model = "gemini-2.0-flash-preview-image-generation"
    supports_size = False

    def to_provider_payload(self, request: ImageRequest) -> dict[str, Any]:
        return {
            "contents": [
                {"role": "user", "parts": [{"text": request.prompt}]},
            ],
            "generationConfig": {"responseModalities": ["TEXT", "IMAGE"]},
        }
