"""
RATE LIMITER MODULE
===================

Fixed-window request counter keyed by client id (the caller's IP address),
backed by the `limits` library (the engine behind slowapi).

Each client gets a window that starts with its first request. Requests 1..N in
that window are admitted; request N+1 onwards is rejected until the window
expires, at which point the counter starts over from zero (fixed window, not
sliding). Counters live in the limiter's storage; the default MemoryStorage is
per process, so two server processes keep two independent counts. Pass a
shared limits storage (e.g. RedisStorage) to count across instances.
"""

import math
import time
from typing import Optional

from limits import RateLimitItemPerSecond
from limits.storage import MemoryStorage, Storage
from limits.strategies import FixedWindowRateLimiter as FixedWindowStrategy


class FixedWindowRateLimiter:
    """
    admit(client_id) -> bool is the whole interface the HTTP layer needs;
    remaining() and seconds_until_reset() only fill in RateLimit-* response headers.
    """

    def __init__(
        self,
        max_requests: int = 100,
        window_seconds: float = 15 * 60,
        storage: Optional[Storage] = None,
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._storage = storage or MemoryStorage()
        self._strategy = FixedWindowStrategy(self._storage)
        self._item = RateLimitItemPerSecond(max_requests, max(1, int(window_seconds)))

    def admit(self, client_id: str) -> bool:
        """Count one request for client_id; True if it is within the limit."""
        return self._strategy.hit(self._item, client_id)

    def remaining(self, client_id: str) -> int:
        return max(0, self._strategy.get_window_stats(self._item, client_id).remaining)

    def seconds_until_reset(self, client_id: str) -> int:
        """Seconds until the client's window closes; 0 when it has no open window."""
        reset_time = self._strategy.get_window_stats(self._item, client_id).reset_time
        return max(0, math.ceil(reset_time - time.time()))

    def reset(self) -> None:
        self._storage.reset()
