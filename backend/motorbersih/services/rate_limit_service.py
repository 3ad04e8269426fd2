"""
Rate Limiting Service

WHY: Throttle abusive clients without per-request global state. A single
limiter instance is injected on the app and keyed by client identity.

ALGORITHM: fixed window. Each key owns a bucket (window_start, count) that
expires after window_seconds; expired buckets are pruned lazily.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    remaining: int
    retry_after_seconds: int


class FixedWindowRateLimiter:
    def __init__(self, limit: int, window_seconds: int, clock: Callable[[], float] = time.monotonic):
        if limit <= 0 or window_seconds <= 0:
            raise ValueError("limit and window_seconds must be positive")
        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock
        self._buckets: dict[str, tuple[float, int]] = {}
        self._lock = threading.Lock()
        self._last_prune = clock()

    def hit(self, key: str) -> RateLimitDecision:
        """Count one request for key and decide whether it may proceed."""
        now = self._clock()
        with self._lock:
            self._prune(now)

            window_start, count = self._buckets.get(key, (now, 0))
            if now - window_start >= self.window_seconds:
                window_start, count = now, 0

            if count >= self.limit:
                retry_after = int(window_start + self.window_seconds - now) + 1
                return RateLimitDecision(False, 0, max(retry_after, 1))

            count += 1
            self._buckets[key] = (window_start, count)
            return RateLimitDecision(True, self.limit - count, 0)

    def reset(self, key: str | None = None) -> None:
        with self._lock:
            if key is None:
                self._buckets.clear()
            else:
                self._buckets.pop(key, None)

    def _prune(self, now: float) -> None:
        if now - self._last_prune < self.window_seconds:
            return
        expired = [k for k, (start, _) in self._buckets.items() if now - start >= self.window_seconds]
        for k in expired:
            del self._buckets[k]
        self._last_prune = now
