"""
LLM Fallback - chat and image generation across an ordered provider chain.

This package provides:
- Canonical request/response models shared by every provider
- A cost guard that clamps chat requests before they are sent
- Adapters translating the canonical models to each provider's schema
- A retrying, strictly sequential fallback orchestrator
- A FastAPI app factory exposing the chains over HTTP
"""

from .aggregate import AggregatedFailure, aggregate
from .errors import (
    AllProvidersFailedError,
    ConfigurationError,
    FallbackError,
    MalformedResponseError,
    ProviderError,
    UpstreamHTTPError,
    UpstreamTimeoutError,
    ValidationError,
)
from .models import (
    AttemptOutcome,
    ChatMessage,
    ChatRequest,
    ChatResponse,
    ImageRef,
    ImageRequest,
    ImageResult,
)
from .orchestrator import FallbackOrchestrator, ProviderDescriptor
from .retry import RetryPolicy, execute_with_retry
from .sanitizer import SanitizerLimits, sanitize

__all__ = [
    # Models
    "ChatMessage",
    "ChatRequest",
    "ChatResponse",
    "ImageRequest",
    "ImageRef",
    "ImageResult",
    "AttemptOutcome",
    # Cost guard
    "SanitizerLimits",
    "sanitize",
    # Fallback
    "RetryPolicy",
    "execute_with_retry",
    "ProviderDescriptor",
    "FallbackOrchestrator",
    "AggregatedFailure",
    "aggregate",
    # Errors
    "FallbackError",
    "ValidationError",
    "ProviderError",
    "ConfigurationError",
    "UpstreamHTTPError",
    "UpstreamTimeoutError",
    "MalformedResponseError",
    "AllProvidersFailedError",
]
