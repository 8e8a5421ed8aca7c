from __future__ import annotations

import random
import time
from typing import Callable, Optional


class SimpleRateLimiter:
    """Spaces calls at least 1/requests_per_sec apart."""

    def __init__(
        self,
        requests_per_sec: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if requests_per_sec <= 0:
            raise ValueError("requests_per_sec must be > 0")
        self._min_interval = 1.0 / requests_per_sec
        self._clock = clock
        self._sleep = sleep
        self._last_ts: Optional[float] = None

    def wait(self) -> None:
        if self._last_ts is not None:
            sleep_for = self._min_interval - (self._clock() - self._last_ts)
            if sleep_for > 0:
                self._sleep(sleep_for)
        self._last_ts = self._clock()


def backoff_delay(attempt: int, base: float = 0.5, cap: float = 8.0, retry_after: Optional[float] = None) -> float:
    # server hint wins, still bounded by cap
    if retry_after is not None and retry_after >= 0:
        return min(cap, retry_after)
    t = min(cap, base * (2 ** attempt))
    return t * (0.7 + random.random() * 0.6)


def backoff_sleep(attempt: int, retry_after: Optional[float] = None) -> None:
    time.sleep(backoff_delay(attempt, retry_after=retry_after))
