"""Bounded retry with a fixed delay.

Used for CI polling and for auto-merging the version bump PR. Timeouts are
attempt-count based; there is no wall-clock deadline and no cancellation.
"""

import logging
import time
from typing import Callable, Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class RetryPolicy(BaseModel):
    """Maximum attempts and the fixed delay slept between them."""

    max_attempts: int = Field(default=10, ge=1)
    delay_seconds: float = Field(default=10, ge=0)


class RetryResult(Generic[T]):
    """Last value produced, attempts used, and whether the predicate held."""

    def __init__(self, value: T, attempts: int, done: bool) -> None:
        self.value = value
        self.attempts = attempts
        self.done = done

    def __repr__(self) -> str:
        return f"RetryResult(value={self.value!r}, attempts={self.attempts}, done={self.done})"


def retry_until(
    attempt: Callable[[int], T],
    is_done: Callable[[T], bool],
    policy: RetryPolicy,
    log: logging.Logger | None = None,
) -> RetryResult[T]:
    """Call attempt(n) for n = 1..max_attempts until is_done(value) holds.

    Sleeps policy.delay_seconds between attempts (not after the last one).
    Exceptions raised by attempt propagate to the caller.

    Args:
        attempt: Called with the 1-based attempt number.
        is_done: Terminal predicate on the attempt's value.
        policy: Attempt budget and delay.
        log: Optional logger.

    Returns:
        RetryResult with the last value; done is False when the budget ran out.
    """
    value = attempt(1)
    attempts = 1
    while not is_done(value):
        if attempts >= policy.max_attempts:
            if log:
                log.debug("Retry budget exhausted after %d attempts", attempts)
            return RetryResult(value, attempts, False)
        time.sleep(policy.delay_seconds)
        attempts += 1
        value = attempt(attempts)
    return RetryResult(value, attempts, True)
