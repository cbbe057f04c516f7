"""
Bounded retry with linear backoff.
"""

import logging
import time
from typing import Callable, TypeVar

from ..models.errors import RetryExhaustedError, RestartTriggered

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetryPolicy:
    """
    Calls an operation up to max_attempts times.

    After failed attempt N (1-based) it sleeps N * base_delay seconds, except
    after the final attempt. RestartTriggered is never retried.
    """

    def __init__(
        self,
        max_attempts: int = 3,
        base_delay: float = 2.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")
        if base_delay < 0:
            raise ValueError(f"base_delay must be non-negative, got {base_delay}")
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self._sleep = sleep

    def run(self, operation: Callable[[], T], description: str = "operation") -> T:
        """
        Run the operation until it succeeds or attempts run out.

        Raises:
            RetryExhaustedError: carrying the last error and the attempt count
            RestartTriggered: passed through untouched
        """
        last_error: Exception = RuntimeError("no attempts made")

        for attempt in range(1, self.max_attempts + 1):
            try:
                return operation()
            except RestartTriggered:
                raise
            except Exception as e:
                last_error = e

            if attempt < self.max_attempts:
                delay = attempt * self.base_delay
                logger.warning(
                    f"{description} attempt {attempt} failed: {last_error}. "
                    f"Retrying in {delay:g}s..."
                )
                self._sleep(delay)
            else:
                logger.warning(f"{description} attempt {attempt} failed: {last_error}")

        raise RetryExhaustedError(self.max_attempts, last_error)
