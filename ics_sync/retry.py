from __future__ import annotations

import logging
import random
import time
from typing import Callable, Optional, TypeVar

from .errors import RateLimited, RequestFailed

T = TypeVar("T")

MAX_WAIT = 1025


def next_wait(wait: Optional[float]) -> float:
    return wait * 2 if wait else 1


def call_with_backoff(
    func: Callable[..., T],
    *args,
    sleep: Callable[[float], None] = time.sleep,
    jitter: Callable[[], float] = random.random,
    **kwargs,
) -> T:
    """Call ``func`` until it stops raising :class:`RateLimited`."""
    wait: Optional[float] = None
    attempt = 0
    while True:
        attempt += 1
        try:
            return func(*args, **kwargs)
        except RateLimited as exc:
            wait = next_wait(wait)
            if wait > MAX_WAIT:
                raise RequestFailed(
                    f"Request failed after {attempt} rate-limited attempts",
                    status=exc.status,
                    payload=exc.payload,
                ) from exc
            delay = wait + jitter()
            logging.warning("Rate limited (attempt %d), waiting %.3f sec and resending", attempt, delay)
            sleep(delay)
