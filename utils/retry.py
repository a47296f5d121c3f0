"""
Bounded retry policy for optimistic writes.

The booking insert is attempted a fixed number of times. Between attempts the
policy sleeps for a linearly increasing delay and runs a caller-supplied
re-check (for bookings: availability is re-evaluated, so a retry never writes
over a slot that someone else has taken in the meantime).
"""

import logging
import sqlite3
import time
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class RetryExhausted(Exception):
    """Raised when every attempt failed with a retryable error."""

    def __init__(self, attempts: int, last_error: Optional[Exception] = None):
        super().__init__(f'Gave up after {attempts} attempts: {last_error}')
        self.attempts = attempts
        self.last_error = last_error


def is_unique_violation(error: Exception) -> bool:
    """True for sqlite UNIQUE constraint failures."""
    return isinstance(error, sqlite3.IntegrityError) and 'UNIQUE' in str(error)


class InsertRetryPolicy:
    """
    Run an operation with bounded attempts and linear backoff.

    Args:
        max_attempts: Total attempts including the first one
        backoff_ms: Delay unit; the wait after attempt N is backoff_ms * N
        should_retry: Predicate deciding whether an exception is retryable
        sleep: Sleep function (injectable for tests)
    """

    def __init__(
        self,
        max_attempts: int = 3,
        backoff_ms: int = 100,
        should_retry: Callable[[Exception], bool] = is_unique_violation,
        sleep: Callable[[float], None] = time.sleep
    ):
        if max_attempts < 1:
            raise ValueError('max_attempts must be at least 1')
        self.max_attempts = max_attempts
        self.backoff_ms = backoff_ms
        self.should_retry = should_retry
        self.sleep = sleep

    def delay_for(self, attempt: int) -> float:
        """Seconds to wait after the given failed attempt (1-based)."""
        return self.backoff_ms * attempt / 1000.0

    def run(self, operation: Callable[[int], object],
            before_retry: Optional[Callable[[int, Exception], None]] = None):
        """
        Execute operation until it succeeds or the attempt bound is reached.

        Args:
            operation: Callable receiving the 1-based attempt number
            before_retry: Called with (next_attempt, last_error) before each
                retry. Exceptions it raises abort the loop unchanged.

        Returns:
            Whatever operation returns

        Raises:
            RetryExhausted: All attempts failed with retryable errors
            Exception: Any non-retryable error from operation
        """
        last_error = None

        for attempt in range(1, self.max_attempts + 1):
            if last_error is not None:
                self.sleep(self.delay_for(attempt - 1))
                if before_retry:
                    before_retry(attempt, last_error)

            try:
                return operation(attempt)
            except Exception as e:
                if not self.should_retry(e):
                    raise
                last_error = e
                logger.warning(
                    'Attempt %d/%d failed with retryable error: %s',
                    attempt, self.max_attempts, e
                )

        raise RetryExhausted(self.max_attempts, last_error)
