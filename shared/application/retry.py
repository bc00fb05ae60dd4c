"""
Bounded Retry

A fixed-attempt retry policy for persistence steps that follow an
irreversible side effect (money already moved at the gateway).
It wraps only the storage call; business validation is never retried.
"""

from dataclasses import dataclass
from typing import Callable, Tuple, Type, TypeVar
import logging

from django.db import DatabaseError

logger = logging.getLogger(__name__)

T = TypeVar('T')


class RetryExhausted(Exception):
    """Raised when every attempt failed; wraps the last error"""

    def __init__(self, attempts: int, last_error: BaseException):
        super().__init__(f"Gave up after {attempts} attempts: {last_error}")
        self.attempts = attempts
        self.last_error = last_error


@dataclass(frozen=True)
class BoundedRetry:
    """
    Retry a callable up to max_attempts times, without backoff.

    Only exceptions listed in retry_on are treated as transient;
    anything else propagates on the first occurrence.
    """
    max_attempts: int = 3
    retry_on: Tuple[Type[BaseException], ...] = (DatabaseError,)

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

    def run(self, operation: Callable[[], T], description: str = 'operation') -> T:
        last_error = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                return operation()
            except self.retry_on as e:
                last_error = e
                logger.warning(
                    f"Attempt {attempt}/{self.max_attempts} of {description} failed: {e}"
                )
        raise RetryExhausted(self.max_attempts, last_error)
