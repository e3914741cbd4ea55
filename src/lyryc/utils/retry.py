"""Retry helpers for lyrics database requests."""

import time
from typing import Any, Callable, Optional, Tuple, Type, TypeVar

from ..exceptions import RequestCancelled
from ..utils.logging import get_logger

logger = get_logger(__name__)

T = TypeVar('T')

# Default retry settings
DEFAULT_MAX_RETRIES = 3
DEFAULT_BASE_DELAY = 1.0  # seconds
DEFAULT_MAX_DELAY = 30.0  # seconds
DEFAULT_BACKOFF_FACTOR = 2.0


def linear_backoff(base_delay: float) -> Callable[[int], float]:
    """Delay grows as base_delay * attempt (1s, 2s, 3s ...)."""
    return lambda attempt: base_delay * attempt


def exponential_backoff(
    base_delay: float = DEFAULT_BASE_DELAY,
    backoff_factor: float = DEFAULT_BACKOFF_FACTOR,
    max_delay: float = DEFAULT_MAX_DELAY,
) -> Callable[[int], float]:
    """Delay grows as base_delay * factor**(attempt-1), capped at max_delay."""
    return lambda attempt: min(base_delay * backoff_factor ** (attempt - 1), max_delay)


def retry_request(
    func: Callable[..., T],
    *args: Any,
    max_retries: int = DEFAULT_MAX_RETRIES,
    delay_for: Optional[Callable[[int], float]] = None,
    exceptions: Tuple[Type[Exception], ...] = (Exception,),
    sleep: Callable[[float], None] = time.sleep,
    should_cancel: Optional[Callable[[], bool]] = None,
    **kwargs: Any,
) -> T:
    """
    Execute a function with retry logic.

    ``delay_for(attempt)`` gives the wait before retry number ``attempt``
    (1-based); exponential backoff from DEFAULT_BASE_DELAY by default.

    Args:
        func: Callable to run
        max_retries: Retries after the first attempt
        delay_for: Backoff schedule
        exceptions: Exception types that trigger a retry
        sleep: Sleep function, injectable for tests
        should_cancel: Checked before every attempt and every backoff wait

    Raises:
        RequestCancelled: ``should_cancel`` returned True
        The last exception if all retries fail
    """
    delay_for = delay_for or exponential_backoff()
    last_exception: Optional[Exception] = None
    name = getattr(func, "__name__", repr(func))

    def check_cancelled() -> None:
        if should_cancel is not None and should_cancel():
            raise RequestCancelled(f"Cancelled while retrying {name}")

    for attempt in range(max_retries + 1):
        check_cancelled()
        try:
            return func(*args, **kwargs)
        except exceptions as e:
            last_exception = e

            if attempt < max_retries:
                check_cancelled()
                logger.debug(f"Retry {attempt + 1}/{max_retries} for {name}: {e}")
                sleep(delay_for(attempt + 1))
            else:
                logger.warning(f"All {max_retries} retries exhausted for {name}: {e}")

    if last_exception:
        raise last_exception

    raise RuntimeError("Unexpected state in retry logic")
