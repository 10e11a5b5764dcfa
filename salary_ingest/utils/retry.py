"""
Retry utility with configurable backoff.

This module provides retry logic for transient failures. With
exponential_base=1.0 every wait is base_delay, which is the fixed
backoff the Fetcher uses.
"""

import time
from typing import Callable, TypeVar, Optional
from dataclasses import dataclass
from salary_ingest.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar('T')


@dataclass
class RetryConfig:
    """Configuration for retry behavior."""

    max_retries: int = 3
    base_delay: float = 1.0
    max_delay: float = 60.0
    exponential_base: float = 2.0

    def __post_init__(self):
        """Validate configuration."""
        if self.max_retries < 0:
            raise ValueError("max_retries must be non-negative")
        if self.base_delay <= 0:
            raise ValueError("base_delay must be positive")
        if self.max_delay < self.base_delay:
            raise ValueError("max_delay must be >= base_delay")
        if self.exponential_base < 1:
            raise ValueError("exponential_base must be >= 1")

    @classmethod
    def fixed(cls, max_retries: int, delay: float) -> "RetryConfig":
        """Same delay between every attempt."""
        return cls(max_retries=max_retries, base_delay=delay, max_delay=delay, exponential_base=1.0)

    def delay_for(self, attempt: int) -> float:
        """Seconds to wait after the given zero-based failed attempt."""
        return min(self.base_delay * (self.exponential_base ** attempt), self.max_delay)


def retry_with_backoff(
    func: Callable[[], T],
    config: Optional[RetryConfig] = None,
    retry_on: tuple = (Exception,),
    on_retry: Optional[Callable[[int, Exception], None]] = None,
    quiet: bool = False,
) -> T:
    """
    Retry a function with backoff.

    Args:
        func: Function to retry (takes no arguments)
        config: Retry configuration (default: 3 retries, 1s base delay)
        retry_on: Tuple of exception types to retry on
        on_retry: Optional callback called on each retry (attempt, exception)
        quiet: Suppress the retry/exhausted log lines

    Returns:
        Result from successful function call

    Raises:
        Last exception if all retries exhausted

    Example:
        >>> def flaky_function():
        ...     import random
        ...     if random.random() < 0.5:
        ...         raise ConnectionError("Transient error")
        ...     return "Success"
        >>> result = retry_with_backoff(flaky_function)
        >>> result == "Success"
        True
    """
    if config is None:
        config = RetryConfig()

    for attempt in range(config.max_retries + 1):
        try:
            return func()
        except retry_on as e:
            # Last attempt - don't wait, just raise
            if attempt == config.max_retries:
                if not quiet:
                    logger.error(f"All {config.max_retries} retries exhausted: {e}")
                raise

            delay = config.delay_for(attempt)

            if not quiet:
                logger.warning(
                    f"Retry {attempt + 1}/{config.max_retries} "
                    f"after {delay:.2f}s: {e}"
                )

            if on_retry:
                on_retry(attempt + 1, e)

            time.sleep(delay)

    raise RuntimeError("Retry logic error")
