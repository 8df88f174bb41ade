"""
Backoff for idempotent reads.

BackofficeClient wraps GET requests with with_retry; mutations are sent once
so a lost response never creates a second project or repository.
"""

import logging
import random
import time
from dataclasses import dataclass, field
from functools import wraps
from typing import Any, Callable, Optional, TypeVar

from sdlc_backoffice.client.errors import TransportError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class RetryConfig:
    """How often and how patiently reads are retried."""

    max_retries: int = 2
    initial_delay: float = 0.5
    max_delay: float = 5.0
    exponential_base: float = 2.0
    jitter: bool = True
    retryable_status_codes: set[int] = field(
        default_factory=lambda: {502, 503, 504}
    )


def calculate_delay(attempt: int, config: RetryConfig) -> float:
    """Seconds to wait after the zero-based `attempt` failed."""
    backoff = min(
        config.initial_delay * config.exponential_base**attempt, config.max_delay
    )
    if config.jitter:
        # Up to 25% extra
        backoff *= 1 + 0.25 * random.random()
    return backoff


def with_retry(
    config: Optional[RetryConfig] = None,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Retry the wrapped call while it raises a retryable TransportError."""
    config = config or RetryConfig()

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            attempt = 0
            while True:
                try:
                    return func(*args, **kwargs)
                except TransportError as e:
                    reason = e.cause or e.status_code
                    if not e.retryable:
                        raise
                    if attempt >= config.max_retries:
                        logger.error(
                            f"Giving up on {func.__name__} after "
                            f"{attempt + 1} attempts: {reason}"
                        )
                        raise
                    delay = calculate_delay(attempt, config)
                    attempt += 1
                    logger.warning(
                        f"Retrying {func.__name__} ({attempt}/{config.max_retries}) "
                        f"in {delay:.2f}s: {reason}"
                    )
                    time.sleep(delay)

        return wrapper

    return decorator
