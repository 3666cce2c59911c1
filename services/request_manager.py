#!/usr/bin/env python3
"""
Request Manager - Per-client rate limiting

Fixed window per client IP: the first request opens a window, later
requests in the same window are counted, and the window resets once it
expires. Limits:
1. Analysis (AI calls): 10 requests/minute
2. Stations: 30 requests/minute
3. Warnings: 20 requests/minute
"""
import threading
import time
from typing import Callable, Dict, NamedTuple

from config import (
    RATE_LIMIT_ANALYSIS,
    RATE_LIMIT_STATIONS,
    RATE_LIMIT_WARNINGS,
    RATE_LIMIT_WINDOW_SECONDS,
)


class RateLimitResult(NamedTuple):
    allowed: bool
    remaining: int
    reset_in: float  # seconds until the window resets


class RateLimiter:
    """
    Fixed-window request counter keyed by client id.

    Usage:
        limiter = RateLimiter("analysis", limit=10)
        result = limiter.check(client_ip)
        if not result.allowed:
            ...  # answer 429
    """

    def __init__(
        self,
        name: str,
        limit: int,
        window_seconds: float = RATE_LIMIT_WINDOW_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.name = name
        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock
        self._clients: Dict[str, list] = {}  # client -> [count, reset_at]
        self._lock = threading.Lock()

    def check(self, client: str) -> RateLimitResult:
        """Count one request for client and tell whether it is allowed"""
        now = self._clock()
        with self._lock:
            entry = self._clients.get(client)
            if entry is None or now >= entry[1]:
                self._clients[client] = [1, now + self.window_seconds]
                return RateLimitResult(True, self.limit - 1, self.window_seconds)

            reset_in = entry[1] - now
            if entry[0] >= self.limit:
                print(f"[RequestManager] {self.name}: rate limit hit for {client}")
                return RateLimitResult(False, 0, reset_in)

            entry[0] += 1
            return RateLimitResult(True, self.limit - entry[0], reset_in)

    def cleanup(self) -> int:
        """Forget clients whose window has expired"""
        now = self._clock()
        with self._lock:
            expired = [client for client, (_, reset_at) in self._clients.items() if now >= reset_at]
            for client in expired:
                del self._clients[client]
        return len(expired)

    def reset(self):
        with self._lock:
            self._clients.clear()


# ============== SHARED LIMITERS ==============
analysis_limiter = RateLimiter("analysis", RATE_LIMIT_ANALYSIS)
stations_limiter = RateLimiter("stations", RATE_LIMIT_STATIONS)
warnings_limiter = RateLimiter("warnings", RATE_LIMIT_WARNINGS)

ALL_LIMITERS = (analysis_limiter, stations_limiter, warnings_limiter)


def cleanup_all() -> int:
    return sum(limiter.cleanup() for limiter in ALL_LIMITERS)
