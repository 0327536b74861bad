"""Bounded retry with exponential backoff for transient provider failures."""

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeVar

from app.logging.logger import Log

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Total attempts and capped exponential delays between them."""

    attempts: int = 3
    base_delay_seconds: float = 1.0
    max_delay_seconds: float = 10.0

    def __post_init__(self) -> None:
        if self.attempts <= 0:
            raise ValueError("attempts must be > 0")
        if self.base_delay_seconds < 0 or self.max_delay_seconds < 0:
            raise ValueError("delays must be >= 0")

    def delay_for(self, attempt: int) -> float:
        """Delay after the given failed attempt (1-based)."""
        return min(self.base_delay_seconds * (2 ** (attempt - 1)), self.max_delay_seconds)


def retry_sync(
    operation: Callable[[], T],
    *,
    policy: RetryPolicy,
    should_retry: Callable[[Exception], bool],
    sleep: Callable[[float], None] = time.sleep,
    label: str = "operation",
) -> T:
    """Run ``operation`` until it succeeds, fails permanently, or attempts run out.

    The last exception is re-raised unchanged.
    """
    for attempt in range(1, policy.attempts + 1):
        try:
            return operation()
        except Exception as error:
            if attempt >= policy.attempts or not should_retry(error):
                raise
            delay = policy.delay_for(attempt)
            Log.warning(
                f"{label} failed, retrying",
                attempt=attempt,
                max_attempts=policy.attempts,
                delay_seconds=delay,
                error=str(error),
            )
            sleep(delay)

    raise RuntimeError("retry_sync exhausted unexpectedly")
