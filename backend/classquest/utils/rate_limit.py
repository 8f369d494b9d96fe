"""In-memory sliding-window limiter used to throttle login attempts."""

from __future__ import annotations

import threading
import time
from collections import defaultdict, deque

from ..errors import RateLimitedError


class SlidingWindowLimiter:
    """Allow at most `max_hits` per key within `window_seconds`."""

    def __init__(self, max_hits: int, window_seconds: int):
        self.max_hits = max_hits
        self.window_seconds = window_seconds
        self._hits = defaultdict(deque)
        self._lock = threading.Lock()

    def hit(self, key: str) -> None:
        """Record a hit for `key` or raise `RateLimitedError` when over the limit."""
        now = time.monotonic()
        with self._lock:
            q = self._hits[key]
            cutoff = now - self.window_seconds
            while q and q[0] < cutoff:
                q.popleft()
            if len(q) >= self.max_hits:
                raise RateLimitedError(max(1, int(self.window_seconds - (now - q[0]))))
            q.append(now)

    def clear(self, key: str) -> None:
        with self._lock:
            self._hits.pop(key, None)

    def reset(self) -> None:
        with self._lock:
            self._hits.clear()
