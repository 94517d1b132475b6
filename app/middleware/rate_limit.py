"""
In-process rate limiting for anonymous chat queries.

Implements a sliding window limiter keyed by client IP. It only applies to
``/chat`` requests that arrive without a connected wallet and is disabled
entirely when ``free_query_limit`` is 0.
"""

import asyncio
import time
from collections import deque
from typing import Callable, Deque, Dict, Optional

from fastapi import Request

from ..config import settings

FREE_QUERY_LIMIT_REPLY = (
    "🚦 You've used all your free questions for now.\n\n"
    "Connect your wallet to keep chatting, or come back in a little while. 🚀"
)


class RateLimitExceeded(Exception):
    """Rate limit has been exceeded."""
    def __init__(self, limit: int, window_seconds: int, retry_after: int):
        self.limit = limit
        self.window_seconds = window_seconds
        self.retry_after = retry_after
        super().__init__(f"Rate limit exceeded: {limit} requests per {window_seconds}s")


class RateLimiter:
    """
    Sliding window limiter held in process memory.

    Each key keeps the timestamps of its requests inside the current window;
    older entries are dropped on every check.
    """

    def __init__(
        self,
        limit: Optional[int] = None,
        window_seconds: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.limit = settings.free_query_limit if limit is None else limit
        self.window_seconds = window_seconds or settings.free_query_window_seconds
        self._clock = clock
        self._hits: Dict[str, Deque[float]] = {}
        self._lock = asyncio.Lock()

    @property
    def enabled(self) -> bool:
        return self.limit > 0

    async def check_limit(self, key: str) -> bool:
        """
        Record a request for ``key``.

        Returns:
            True if within limits, raises RateLimitExceeded if exceeded
        """
        if not self.enabled:
            return True

        async with self._lock:
            now = self._clock()
            window_start = now - self.window_seconds
            self._prune(window_start)
            hits = self._hits.setdefault(key, deque())

            if len(hits) >= self.limit:
                retry_after = max(1, int(hits[0] + self.window_seconds - now))
                raise RateLimitExceeded(self.limit, self.window_seconds, retry_after)

            hits.append(now)
            return True

    def _prune(self, window_start: float) -> None:
        """Drop expired hits and forget keys with nothing left in the window."""
        for key in list(self._hits):
            hits = self._hits[key]
            while hits and hits[0] <= window_start:
                hits.popleft()
            if not hits:
                del self._hits[key]

    async def check_request(self, request: Request, has_wallet: bool = False) -> bool:
        """Apply the free-query limit to an anonymous request."""
        if has_wallet:
            return True
        identifier = request.client.host if request.client else "unknown"
        return await self.check_limit(f"{request.url.path}:{identifier}")

    def remaining(self, key: str) -> Optional[int]:
        if not self.enabled:
            return None
        now = self._clock()
        hits = [hit for hit in self._hits.get(key, ()) if hit > now - self.window_seconds]
        return max(0, self.limit - len(hits))

    def reset(self) -> None:
        self._hits.clear()


# Singleton instance
_rate_limiter: Optional[RateLimiter] = None


def get_rate_limiter() -> RateLimiter:
    """Get the singleton rate limiter instance."""
    global _rate_limiter
    if _rate_limiter is None:
        _rate_limiter = RateLimiter()
    return _rate_limiter
