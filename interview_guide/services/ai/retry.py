"""Bounded retry with exponential backoff for AI capability calls."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional, TypeVar

from interview_guide.core.config import settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetryExhausted(Exception):
    """All attempts of an operation failed."""

    def __init__(self, description: str, attempts: int, last_error: Optional[BaseException]):
        super().__init__(
            f"{description} failed after {attempts} attempt(s): {last_error!r}")
        self.description = description
        self.attempts = attempts
        self.last_error = last_error


@dataclass(frozen=True)
class RetryPolicy:
    """How often and how patiently to retry a failing call.

    The delay before retry ``n`` (1-based) is
    ``min(max_delay, base_delay * multiplier ** (n - 1))``. Each attempt is
    bounded by ``attempt_timeout`` seconds when set.
    """

    max_attempts: int = 3
    base_delay: float = 0.5
    multiplier: float = 2.0
    max_delay: float = 8.0
    attempt_timeout: Optional[float] = 60.0
    sleep: Callable[[float], Awaitable[None]] = field(
        default=asyncio.sleep, repr=False, compare=False)

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

    @classmethod
    def from_settings(cls) -> "RetryPolicy":
        return cls(
            max_attempts=settings.AI_MAX_ATTEMPTS,
            base_delay=settings.AI_BACKOFF_BASE_SECONDS,
            max_delay=settings.AI_BACKOFF_MAX_SECONDS,
            attempt_timeout=settings.AI_ATTEMPT_TIMEOUT_SECONDS,
        )

    def delay_for(self, retry_number: int) -> float:
        return min(self.max_delay, self.base_delay * self.multiplier ** (retry_number - 1))

    async def run(self, operation: Callable[[], Awaitable[T]], description: str = "operation") -> T:
        """Await ``operation()`` until it succeeds or attempts run out.

        Raises:
            RetryExhausted: every attempt raised or timed out
        """
        last_error: Optional[BaseException] = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                if self.attempt_timeout:
                    return await asyncio.wait_for(operation(), timeout=self.attempt_timeout)
                return await operation()
            except Exception as e:
                last_error = e
                logger.warning(
                    f"{description} attempt {attempt}/{self.max_attempts} failed: {e!r}")
                if attempt < self.max_attempts:
                    await self.sleep(self.delay_for(attempt))
        raise RetryExhausted(description, self.max_attempts, last_error) from last_error

    def worst_case_seconds(self) -> float:
        """Upper bound on how long ``run`` can take before giving up."""
        attempts = self.max_attempts * (self.attempt_timeout or 0.0)
        backoff = sum(self.delay_for(n) for n in range(1, self.max_attempts))
        return attempts + backoff
