"""Sliding-window request limiter keyed by client."""

from __future__ import annotations

import time
from typing import Callable, Dict, List

from .errors import RateLimitedError


class SlidingWindowRateLimiter:
    def __init__(self, limit: int, window_seconds: float, clock: Callable[[], float] = time.monotonic) -> None:
        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock
        self._log: Dict[str, List[float]] = {}

    @property
    def tracked_keys(self) -> int:
        return len(self._log)

    def is_limited(self, key: str) -> bool:
        """Count this request for `key`; True when the window now holds more than `limit`."""
        now = self._clock()
        window_start = now - self.window_seconds
        timestamps = [ts for ts in self._log.pop(key, ()) if ts > window_start]
        timestamps.append(now)
        self._log[key] = timestamps
        return len(timestamps) > self.limit

    def purge_expired(self) -> int:
        """Forget keys with no request inside the window. Returns how many were dropped."""
        window_start = self._clock() - self.window_seconds
        expired = [key for key, timestamps in self._log.items() if timestamps[-1] <= window_start]
        for key in expired:
            del self._log[key]
        return len(expired)

    def reset(self) -> None:
        self._log.clear()

    def check(self, key: str) -> None:
        """Raise `RateLimitedError` when `key` is over its limit."""
        if self.is_limited(key):
            raise RateLimitedError(f"Rate limit exceeded for {key}")
