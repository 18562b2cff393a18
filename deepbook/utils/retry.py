"""
Bounded retry combinator shared by the network layer, payload extraction
and duplicate-fragment handling.

Usage:
    from deepbook.utils.retry import retry_call, exponential
    text = retry_call(fetch, attempts=10, retry_on=(TransientNetworkError,),
                      backoff=exponential(1.0))
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Tuple, Type, TypeVar

from deepbook.errors import RetryExhausted

logger = logging.getLogger(__name__)

T = TypeVar("T")
Backoff = Callable[[int], float]


def exponential(initial: float = 1.0, factor: float = 2.0) -> Backoff:
    """Delay after failed attempt *n* (1-based): initial * factor**(n-1)."""
    return lambda attempt: initial * factor ** (attempt - 1)


def no_delay(attempt: int) -> float:
    return 0.0


def retry_call(
    fn: Callable[[], T],
    *,
    attempts: int,
    retry_on: Tuple[Type[BaseException], ...],
    backoff: Backoff = no_delay,
    sleep: Callable[[float], None] = time.sleep,
    label: str = "call",
) -> T:
    """
    Call *fn* until it returns, at most *attempts* times.

    Exceptions listed in *retry_on* trigger another attempt after
    ``backoff(attempt)`` seconds; anything else propagates immediately.
    No delay follows the final attempt. Raises RetryExhausted when the
    budget is spent.
    """
    if attempts < 1:
        raise ValueError("attempts must be >= 1")

    last: BaseException | None = None
    for attempt in range(1, attempts + 1):
        try:
            return fn()
        except retry_on as exc:
            last = exc
            if attempt == attempts:
                break
            delay = backoff(attempt)
            logger.warning("%s attempt %d/%d failed (%s); retrying in %.1fs",
                           label, attempt, attempts, exc, delay)
            if delay > 0:
                sleep(delay)

    raise RetryExhausted(attempts, last) from last
