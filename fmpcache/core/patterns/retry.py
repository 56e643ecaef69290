"""Exponential backoff retry for provider calls."""

import asyncio
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, TypeVar

from loguru import logger

from fmpcache.core.exceptions import NetworkError, RateLimitError

T = TypeVar("T")


class RetryState(Enum):
    """Retry state."""

    READY = "ready"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class RetryConfig:
    """Retry configuration."""

    max_attempts: int = 3  # total attempts, first call included
    base_delay: float = 1.0  # seconds
    max_delay: float = 30.0  # seconds
    exponential_base: float = 2.0
    jitter: bool = True
    retry_on_exceptions: list[type] = field(default_factory=lambda: [NetworkError])
    skip_on_exceptions: list[type] = field(default_factory=lambda: [RateLimitError])

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.base_delay < 0:
            raise ValueError("base_delay must be non-negative")


class ExponentialBackoffRetry:
    """Exponential backoff retry."""

    def __init__(self, config: RetryConfig, *, sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep):
        self.config = config
        self.attempt_count = 0
        self.total_delay = 0.0
        self.state = RetryState.READY
        self.last_exception: Exception | None = None
        self._sleep = sleep

    async def execute(self, func: Callable[..., Awaitable[T]], *args: Any, **kwargs: Any) -> T:
        """Run ``func`` and retry it on retryable exceptions.

        Raises:
            Exception: the last exception once attempts are exhausted or the
                exception is not retryable.
        """
        self.state = RetryState.RUNNING
        self.attempt_count = 0
        self.total_delay = 0.0

        while True:
            self.attempt_count += 1
            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                self.last_exception = e
                if not self._should_retry(e) or self.attempt_count >= self.config.max_attempts:
                    self.state = RetryState.FAILED
                    raise

                delay = self._calculate_delay(self.attempt_count - 1)
                logger.warning(
                    "Attempt {}/{} failed with {}: {}; retrying in {:.2f}s",
                    self.attempt_count,
                    self.config.max_attempts,
                    type(e).__name__,
                    e,
                    delay,
                )
                await self._sleep(delay)
                self.total_delay += delay
            else:
                self.state = RetryState.COMPLETED
                return result

    def _should_retry(self, exc: Exception) -> bool:
        if any(isinstance(exc, exc_type) for exc_type in self.config.skip_on_exceptions):
            return False
        return any(isinstance(exc, exc_type) for exc_type in self.config.retry_on_exceptions)

    def _calculate_delay(self, attempt_number: int) -> float:
        """Delay before the retry following ``attempt_number`` (zero based)."""
        if attempt_number < 0:
            return 0.0

        delay = self.config.base_delay * (self.config.exponential_base**attempt_number)

        if self.config.jitter:
            jitter_range = min(delay * 0.1, 1.0)
            delay += random.uniform(-jitter_range, jitter_range)

        return max(0.0, min(delay, self.config.max_delay))

    def get_stats(self) -> dict[str, Any]:
        return {
            "attempts": self.attempt_count,
            "max_attempts": self.config.max_attempts,
            "total_delay": self.total_delay,
            "state": self.state.value,
            "last_exception": str(self.last_exception) if self.last_exception else None,
        }


__all__ = ["ExponentialBackoffRetry", "RetryConfig", "RetryState"]
