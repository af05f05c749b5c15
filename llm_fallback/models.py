"""
Canonical request/response models shared by every provider adapter.

Inbound bodies are parsed with `from_body`, which applies the shape checks
that must fail fast (before any provider is tried) and drops message entries
that cannot be represented rather than coercing them.
"""

import math
from dataclasses import dataclass
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .errors import ValidationError


Role = Literal["system", "user", "assistant"]
ROLES = ("system", "user", "assistant")

CHAT_BODY_FIELDS = {"messages", "model", "temperature", "top_p", "max_tokens"}
IMAGE_BODY_FIELDS = {"prompt", "model", "size"}

# Never passed through: responses are returned whole, not streamed
DROPPED_FIELDS = {"stream", "stream_options"}


def _is_number(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and (isinstance(value, int) or math.isfinite(value))
    )


def _has_non_finite(value: Any) -> bool:
    if isinstance(value, float):
        return not math.isfinite(value)
    if isinstance(value, dict):
        return any(_has_non_finite(v) for v in value.values())
    if isinstance(value, list):
        return any(_has_non_finite(v) for v in value)
    return False


def _optional_str(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _require_object(body: Any) -> dict:
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    return body


def _passthrough(body: dict, known: set[str]) -> dict[str, Any]:
    extra = {
        key: value
        for key, value in body.items()
        if key not in known and key not in DROPPED_FIELDS
    }
    # NaN and Infinity cannot be re-encoded as JSON for the upstream
    for key, value in extra.items():
        if _has_non_finite(value):
            raise ValidationError(f"{key} must not contain NaN or Infinity", field=key)
    return extra


class ChatMessage(BaseModel):
    """A single message in a conversation."""
    role: Role
    content: str


class ChatRequest(BaseModel):
    """Canonical chat completion request."""

    model_config = ConfigDict(frozen=True)

    messages: list[ChatMessage]
    model: Optional[str] = None
    temperature: Optional[float] = None
    top_p: Optional[float] = None
    max_output_tokens: Optional[int] = None
    extra: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_body(cls, body: Any) -> "ChatRequest":
        """Parse an OpenAI-style chat body.

        Unknown keys are kept in `extra` for providers that accept them.
        Messages with an unknown role or a non-string content are dropped.
        """
        body = _require_object(body)

        raw_messages = body.get("messages")
        if not isinstance(raw_messages, list) or not raw_messages:
            raise ValidationError("Missing required field: messages", field="messages")

        messages = [
            ChatMessage(role=m["role"], content=m["content"])
            for m in raw_messages
            if isinstance(m, dict)
            and m.get("role") in ROLES
            and isinstance(m.get("content"), str)
        ]
        if not messages:
            raise ValidationError(
                "messages must contain at least one text message", field="messages"
            )

        max_tokens = body.get("max_tokens")
        return cls(
            messages=messages,
            model=_optional_str(body.get("model")),
            temperature=body["temperature"] if _is_number(body.get("temperature")) else None,
            top_p=body["top_p"] if _is_number(body.get("top_p")) else None,
            max_output_tokens=int(max_tokens) if _is_number(max_tokens) else None,
            extra=_passthrough(body, CHAT_BODY_FIELDS),
        )


class ImageRequest(BaseModel):
    """Canonical image generation request."""

    model_config = ConfigDict(frozen=True)

    prompt: str
    model: Optional[str] = None
    size: Optional[str] = None
    extra: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_body(cls, body: Any) -> "ImageRequest":
        body = _require_object(body)

        prompt = body.get("prompt")
        if not isinstance(prompt, str) or not prompt.strip():
            raise ValidationError("Missing required field: prompt", field="prompt")

        return cls(
            prompt=prompt,
            model=_optional_str(body.get("model")),
            size=_optional_str(body.get("size")),
            extra=_passthrough(body, IMAGE_BODY_FIELDS),
        )


class ChatResponse(BaseModel):
    """Normalized chat result. `text` is always a string, possibly empty."""

    model_config = ConfigDict(protected_namespaces=())

    text: str = ""
    provider_name: str
    model_used: str

    def as_chat_completion(self, completion_id: str = "fallback") -> dict[str, Any]:
        """Render the OpenAI `chat.completion` envelope."""
        return {
            "id": completion_id,
            "object": "chat.completion",
            "model": self.model_used,
            "provider": self.provider_name,
            "choices": [
                {
                    "index": 0,
                    "message": {"role": "assistant", "content": self.text},
                    "finish_reason": "stop",
                }
            ],
        }


class ImageRef(BaseModel):
    """Either a URL or inline base64 data, never both."""
    url: Optional[str] = None
    base64: Optional[str] = None
    mime_type: Optional[str] = None

    @model_validator(mode="after")
    def _exactly_one(self) -> "ImageRef":
        if (self.url is None) == (self.base64 is None):
            raise ValueError("exactly one of url or base64 must be set")
        if self.base64 is not None and not self.mime_type:
            self.mime_type = "image/png"
        return self


class ImageResult(BaseModel):
    """Normalized image generation result."""

    model_config = ConfigDict(protected_namespaces=())

    provider_name: str
    prompt_used: str
    model_used: str
    image: ImageRef


@dataclass(frozen=True)
class AttemptOutcome:
    """Result of one provider attempt, or of skipping a provider."""
    provider_name: str
    succeeded: bool
    error_detail: Optional[str] = None
