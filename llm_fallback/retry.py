"""
Retry a single provider call with linear backoff.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

from .errors import ProviderError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    attempts: int = 2
    base_delay_ms: int = 700

    def __post_init__(self):
        if self.attempts < 1:
            raise ValueError(f"attempts must be >= 1, got {self.attempts}")
        if self.base_delay_ms < 0:
            raise ValueError(f"base_delay_ms must be >= 0, got {self.base_delay_ms}")

    def delay_seconds(self, attempt: int) -> float:
        """Delay before the 0-based `attempt`; zero for the first one."""
        return self.base_delay_ms * attempt / 1000


async def execute_with_retry(
    attempt_fn: Callable[[int], Awaitable[T]],
    policy: RetryPolicy,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """
    Call `attempt_fn(attempt)` until it succeeds or the policy is exhausted.

    Every ProviderError is retried the same way regardless of status code.
    After the last attempt the last error is re-raised unchanged.
    """
    last_error = None
    for attempt in range(policy.attempts):
        if attempt > 0:
            delay = policy.delay_seconds(attempt)
            if delay > 0:
                await sleep(delay)
        try:
            return await attempt_fn(attempt)
        except ProviderError as e:
            last_error = e
            logger.debug(
                "Attempt %d/%d failed: %s", attempt + 1, policy.attempts, e.message
            )
    raise last_error
