"""Retry policy with exponential backoff.

The policy is pure: it answers "retry this error?" and "how long to wait
before retry n?" and leaves the waiting to the caller, so backoff can be
tested with a fake sleep.
"""
import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable

Sleep = Callable[[float], Awaitable[None]]

default_sleep: Sleep = asyncio.sleep


@dataclass(frozen=True)
class RetryPolicy:
    """Exponential backoff without jitter.

    Args:
        max_retries: Retries allowed after the first attempt
        base_delay: Delay before the first retry (in seconds)
        max_delay: Upper bound for any single delay (in seconds)
    """

    max_retries: int = 3
    base_delay: float = 1.0
    max_delay: float = 120.0

    def delay_for(self, retry_number: int) -> float:
        """Delay before retry ``retry_number`` (1-based): base, 2x base, 4x base, ..."""
        if retry_number < 1:
            return 0.0
        return min(self.base_delay * (2 ** (retry_number - 1)), self.max_delay)

    def should_retry(self, error: BaseException, retries_done: int) -> bool:
        """Retry only errors flagged retryable, and only while retries remain."""
        return bool(getattr(error, "retryable", False)) and retries_done < self.max_retries
