"""
Retry helpers with exponential backoff for Google API calls.
"""
import random
from typing import Tuple, Type

# Network-level failures worth another attempt
DEFAULT_RETRYABLE_EXCEPTIONS: Tuple[Type[Exception], ...] = (
    ConnectionError,
    TimeoutError,
)


def calculate_backoff(
    attempt: int,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    exponential_base: float = 2.0,
    jitter: bool = True
) -> float:
    """
    Delay before retry ``attempt`` (1-indexed): base_delay * exponential_base^(attempt-1),
    capped at max_delay, plus up to 25% jitter.
    """
    delay = min(base_delay * (exponential_base ** (attempt - 1)), max_delay)
    if jitter:
        delay += delay * random.uniform(0, 0.25)
    return delay


def is_retryable_error(
    error: Exception,
    retryable_exceptions: Tuple[Type[Exception], ...] = DEFAULT_RETRYABLE_EXCEPTIONS,
    retryable_status_codes: Tuple[int, ...] = (429, 500, 502, 503, 504)
) -> bool:
    """Transient network errors, rate limits and 5xx responses are retryable."""
    if isinstance(error, retryable_exceptions):
        return True

    status = getattr(getattr(error, "resp", None), "status", None)
    if status is not None:
        return int(status) in retryable_status_codes

    error_str = str(error).lower()
    if "rate limit" in error_str or "too many requests" in error_str:
        return True
    if "timeout" in error_str or "timed out" in error_str:
        return True
    return any(str(code) in error_str for code in retryable_status_codes)
