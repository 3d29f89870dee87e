"""Bounded retry with exponential backoff."""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional, Type, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Retry budget and backoff schedule.

    max_retries counts the retries after the first attempt. With the defaults
    a call is tried four times, sleeping 2s, 4s and 8s between attempts.
    """

    max_retries: int = 3
    initial_delay: float = 2.0
    backoff_factor: float = 2.0

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    def delay_for(self, attempt: int) -> float:
        """Seconds to wait after the given failed attempt (1-based)."""
        return self.initial_delay * (self.backoff_factor ** (attempt - 1))


class RetryExhaustedError(Exception):
    """Every attempt of a retried call failed."""

    def __init__(self, attempts: int, last_error: BaseException):
        super().__init__(f"Failed after {attempts} attempt(s): {last_error}")
        self.attempts = attempts
        self.last_error = last_error


def call_with_retry(
    func: Callable[[], T],
    policy: RetryPolicy,
    retryable_exceptions: tuple[Type[BaseException], ...] = (Exception,),
    sleep: Callable[[float], None] = time.sleep,
    on_attempt: Optional[Callable[[int], None]] = None,
    label: Optional[str] = None,
) -> tuple[T, int]:
    """Call func until it succeeds or the policy's retries run out.

    Args:
        func: Zero-argument callable to invoke
        policy: Retry budget and backoff schedule
        retryable_exceptions: Exceptions that trigger another attempt; any
            other exception propagates immediately
        sleep: Sleep function, replaceable in tests
        on_attempt: Called with the 1-based attempt number before each try
        label: Name of the operation in log messages (defaults to func's name)

    Returns:
        (result, attempts used)

    Raises:
        RetryExhaustedError: If every attempt raised a retryable exception
    """
    label = label or getattr(func, "__name__", "call")
    last_error: Optional[BaseException] = None
    for attempt in range(1, policy.max_attempts + 1):
        if on_attempt is not None:
            on_attempt(attempt)
        try:
            return func(), attempt
        except retryable_exceptions as e:
            last_error = e
            if attempt == policy.max_attempts:
                break
            wait_time = policy.delay_for(attempt)
            logger.warning(
                "Attempt %d/%d of %s failed: %s. Retrying in %.1fs",
                attempt,
                policy.max_attempts,
                label,
                e,
                wait_time,
            )
            sleep(wait_time)

    logger.error("Giving up on %s after %d attempt(s): %s", label, policy.max_attempts, last_error)
    raise RetryExhaustedError(policy.max_attempts, last_error)
