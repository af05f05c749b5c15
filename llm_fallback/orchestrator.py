"""
Fallback orchestrator: walk an ordered provider chain until one succeeds.

Providers are tried strictly one after another, never concurrently, so a
request is only ever billed by the providers it actually needed. The first
success ends the walk; later providers are not touched.
"""
import asyncio
import logging
import time
import uuid
from dataclasses import dataclass, field
from functools import partial
from typing import Awaitable, Callable, Optional, Sequence

import httpx

from .adapters import ProviderAdapter
from .aggregate import aggregate
from .errors import AllProvidersFailedError, ConfigurationError, ProviderError
from .models import AttemptOutcome
from .retry import RetryPolicy, execute_with_retry
from .transport import post_json

logger = logging.getLogger(__name__)


DEFAULT_TIMEOUT_SECONDS = 60.0


@dataclass(frozen=True)
class ProviderDescriptor:
    """One entry in a fallback chain. Built at startup, read-only afterwards."""
    adapter: ProviderAdapter
    api_key: Optional[str] = field(default=None, repr=False)
    retry_policy: RetryPolicy = field(default_factory=RetryPolicy)
    timeout: float = DEFAULT_TIMEOUT_SECONDS

    @property
    def name(self) -> str:
        return self.adapter.name

    @property
    def endpoint(self) -> str:
        return self.adapter.endpoint

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)


class FallbackOrchestrator:
    """Dispatch canonical requests across an ordered chain of providers."""

    def __init__(
        self,
        providers: Sequence[ProviderDescriptor],
        client: httpx.AsyncClient,
        failure_message: str = "All providers failed",
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        names = [p.name for p in providers]
        if len(set(names)) != len(names):
            raise ValueError(f"Provider names must be unique: {names}")

        self._providers = tuple(providers)
        self._client = client
        self._failure_message = failure_message
        self._sleep = sleep

    @property
    def providers(self) -> tuple[ProviderDescriptor, ...]:
        return self._providers

    async def dispatch(self, request, request_id: Optional[str] = None):
        """
        Return the first provider's successful result.

        Raises:
            AllProvidersFailedError: every provider failed or was skipped
        """
        request_id = request_id or uuid.uuid4().hex[:12]
        outcomes: list[AttemptOutcome] = []

        for descriptor in self._providers:
            if not descriptor.is_configured:
                error = ConfigurationError(descriptor.name, "credential not set")
                outcomes.append(AttemptOutcome(descriptor.name, False, error.message))
                logger.info("[%s] Skipping %s: %s", request_id, descriptor.name, error.message)
                continue

            attempt_fn = partial(self._attempt, descriptor, request, request_id, outcomes)
            try:
                result = await execute_with_retry(
                    attempt_fn, descriptor.retry_policy, sleep=self._sleep
                )
            except ProviderError as e:
                logger.warning(
                    "[%s] %s exhausted %d attempt(s): %s",
                    request_id, descriptor.name, descriptor.retry_policy.attempts, e.message,
                )
                continue

            logger.info(
                "[%s] Served by %s (model=%s)", request_id, result.provider_name, result.model_used
            )
            return result

        failure = aggregate(outcomes, self._failure_message)
        logger.error("[%s] %s: %s", request_id, failure.message, failure.per_provider)
        raise AllProvidersFailedError(failure, outcomes)

    async def _attempt(
        self,
        descriptor: ProviderDescriptor,
        request,
        request_id: str,
        outcomes: list[AttemptOutcome],
        attempt: int,
    ):
        adapter = descriptor.adapter
        start_time = time.time()

        try:
            raw = await post_json(
                self._client,
                descriptor.name,
                adapter.build_url(descriptor.api_key, request),
                adapter.to_provider_payload(request),
                adapter.build_headers(descriptor.api_key),
                descriptor.timeout,
            )
            result = adapter.from_provider_response(raw, request)
        except ProviderError as e:
            latency_ms = int((time.time() - start_time) * 1000)
            outcomes.append(AttemptOutcome(descriptor.name, False, e.message))
            logger.warning(
                "[%s] %s attempt %d/%d failed after %dms: %s",
                request_id, descriptor.name, attempt + 1,
                descriptor.retry_policy.attempts, latency_ms, e.message,
            )
            raise

        latency_ms = int((time.time() - start_time) * 1000)
        outcomes.append(AttemptOutcome(descriptor.name, True))
        logger.debug(
            "[%s] %s attempt %d succeeded in %dms", request_id, descriptor.name, attempt + 1, latency_ms
        )
        return result
