"""
Adapters for providers speaking the OpenAI REST schema (xAI, OpenAI).
"""

from typing import Any, Optional

from ..models import ChatRequest, ImageRequest
from .base import ChatAdapter, ImageAdapter


class OpenAIChatAdapter(ChatAdapter):
    """Chat completions via `POST /v1/chat/completions`."""

    endpoint = "https://api.x.ai/v1/chat/completions"
    default_model = "grok-3-mini"
    model_prefixes = ("grok",)
    forwards_extra = True

    def to_provider_payload(self, request: ChatRequest) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "model": self.resolve_model(request.model),
            "messages": [
                {"role": m.role, "content": m.content}
                for m in request.messages
            ],
        }

        if request.temperature is not None:
            payload["temperature"] = request.temperature
        if request.top_p is not None:
            payload["top_p"] = request.top_p
        if request.max_output_tokens is not None:
            payload["max_tokens"] = request.max_output_tokens

        return self.merge_extra(payload, request.extra)


class OpenAIImageAdapter(ImageAdapter):
    """Image generation via `POST /v1/images/generations`."""

    endpoint = "https://api.openai.com/v1/images/generations"
    default_model = "dall-e-3"
    model_prefixes = ("dall-e", "gpt-image")

    def __init__(
        self,
        name: str,
        response_format: Optional[str] = "b64_json",
        **kwargs,
    ):
        super().__init__(name, **kwargs)
        self.response_format = response_format

    def to_provider_payload(self, request: ImageRequest) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "model": self.resolve_model(request.model),
            "prompt": request.prompt,
        }

        if self.supports_size:
            payload["size"] = request.size or self.default_size
        if self.response_format:
            payload["response_format"] = self.response_format

        payload = self.merge_extra(payload, request.extra)
        if not self.supports_size:
            # Passthrough fields must not smuggle it back in
            payload.pop("size", None)
        return payload
