"""
Abstract base classes for provider adapters.

An adapter binds one upstream API schema to the canonical models. It is a pair
of pure translations (canonical request -> provider payload, provider payload ->
canonical result) plus the URL and headers needed to reach the provider.
Adapters hold no per-request state and are shared by every request.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from ..errors import MalformedResponseError
from ..extraction import extract_text, find_image, find_revised_prompt, find_text
from ..models import ChatRequest, ChatResponse, ImageRequest, ImageResult


class ProviderAdapter(ABC):
    """
    Translation layer for a single upstream provider.

    Subclasses set the class-level defaults below; any of them can be
    overridden per instance so the same schema family can serve several
    providers (xAI and OpenAI both speak the OpenAI schema).
    """

    endpoint: str
    default_model: str
    # A requested model is forwarded only if it starts with one of these
    model_prefixes: tuple[str, ...] = ()
    # Whether unknown request fields are passed through to the provider
    forwards_extra: bool = False

    def __init__(
        self,
        name: str,
        endpoint: Optional[str] = None,
        default_model: Optional[str] = None,
        model_prefixes: Optional[tuple[str, ...]] = None,
        forwards_extra: Optional[bool] = None,
    ):
        self.name = name
        if endpoint is not None:
            self.endpoint = endpoint
        if default_model is not None:
            self.default_model = default_model
        if model_prefixes is not None:
            self.model_prefixes = tuple(model_prefixes)
        if forwards_extra is not None:
            self.forwards_extra = forwards_extra

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, endpoint={self.endpoint!r})"

    def resolve_model(self, requested: Optional[str]) -> str:
        """Pick the model to send, never leaking another provider's model name."""
        if requested and requested.lower().startswith(self.model_prefixes):
            return requested
        return self.default_model

    def build_url(self, api_key: str, request) -> str:
        return self.endpoint

    def build_headers(self, api_key: str) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }

    def merge_extra(self, payload: dict[str, Any], extra: dict[str, Any]) -> dict[str, Any]:
        """Add passthrough fields without letting them override adapter-set ones."""
        if not self.forwards_extra or not extra:
            return payload
        merged = dict(extra)
        merged.update(payload)
        return merged

    @abstractmethod
    def to_provider_payload(self, request) -> dict[str, Any]:
        """Translate a canonical request into the provider's JSON body."""

    @abstractmethod
    def from_provider_response(self, raw: Any, request):
        """
        Translate a provider's decoded response body into a canonical result.

        Raises:
            MalformedResponseError: when the payload holds no usable result
        """


class ChatAdapter(ProviderAdapter):
    """Adapter for chat completion providers."""

    @abstractmethod
    def to_provider_payload(self, request: ChatRequest) -> dict[str, Any]:
        """Translate a canonical chat request."""

    def from_provider_response(self, raw: Any, request: ChatRequest) -> ChatResponse:
        model_used = self.resolve_model(request.model)
        if isinstance(raw, dict):
            reported = raw.get("model") or raw.get("modelVersion")
            if isinstance(reported, str) and reported:
                model_used = reported

        return ChatResponse(
            text=extract_text(raw),
            provider_name=self.name,
            model_used=model_used,
        )


class ImageAdapter(ProviderAdapter):
    """Adapter for image generation providers."""

    # Some providers reject a `size` field outright
    supports_size: bool = True
    default_size: str = "1024x1024"

    def __init__(self, name: str, supports_size: Optional[bool] = None, **kwargs):
        super().__init__(name, **kwargs)
        if supports_size is not None:
            self.supports_size = supports_size

    @abstractmethod
    def to_provider_payload(self, request: ImageRequest) -> dict[str, Any]:
        """Translate a canonical image request."""

    def from_provider_response(self, raw: Any, request: ImageRequest) -> ImageResult:
        image = find_image(raw)
        if image is None:
            text = find_text(raw)
            if text and text.strip():
                raise MalformedResponseError(
                    self.name, f"{self.name} returned text instead of an image: {text.strip()}"
                )
            raise MalformedResponseError(self.name, f"{self.name} returned no image payload")

        return ImageResult(
            provider_name=self.name,
            prompt_used=find_revised_prompt(raw) or request.prompt,
            model_used=self.resolve_model(request.model),
            image=image,
        )
