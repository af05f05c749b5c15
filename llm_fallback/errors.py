"""
Typed errors raised while serving a request.

Everything under ProviderError is a per-provider failure: the orchestrator
records it and moves on to the next provider. Only ValidationError and
AllProvidersFailedError ever reach the caller.
"""

from typing import Optional


ERROR_DETAIL_LIMIT = 200


def truncate_detail(text: str, limit: int = ERROR_DETAIL_LIMIT) -> str:
    """Cut an error detail down to at most `limit` characters."""
    if len(text) <= limit:
        return text
    return text[: limit - 3] + "..."


class FallbackError(Exception):
    """Base class for all errors raised by this package."""


class ValidationError(FallbackError):
    """Inbound request failed basic shape checks. Never retried."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field


class ProviderError(FallbackError):
    """A single provider attempt failed."""

    def __init__(
        self,
        provider_name: str,
        message: str,
        status_code: Optional[int] = None,
    ):
        self.provider_name = provider_name
        self.message = truncate_detail(message)
        self.status_code = status_code
        super().__init__(self.message)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(provider={self.provider_name!r}, "
            f"status={self.status_code}, message={self.message!r})"
        )


class ConfigurationError(ProviderError):
    """Provider has no credential configured; it is skipped."""


class UpstreamHTTPError(ProviderError):
    """Upstream answered with a non-2xx status, or could not be reached."""


class UpstreamTimeoutError(ProviderError):
    """Upstream call exceeded its per-attempt timeout."""


class MalformedResponseError(ProviderError):
    """Upstream answered 2xx but the payload held no usable result."""


class AllProvidersFailedError(FallbackError):
    """Every provider in the chain was tried or skipped without success."""

    def __init__(self, failure, outcomes=()):
        super().__init__(failure.message)
        self.failure = failure
        self.outcomes = list(outcomes)
