"""
Owner-scoped fixed-window rate limiting for the service boundary.
"""

import logging
import time
from typing import Callable, Dict, Optional, Protocol, Tuple

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from memory_graph.exceptions import RateLimitExceeded, UpstreamError

logger = logging.getLogger(__name__)


class RateLimiter(Protocol):
    async def check(self, owner_id: str, action: str, limit: int) -> None:
        """
        Count one request and raise if the owner is over budget.

        Raises:
            RateLimitExceeded: If more than `limit` requests landed in the current window
        """
        ...


class InMemoryRateLimiter:
    """Fixed-window counters held in process memory."""

    def __init__(self, window_seconds: float = 60.0, clock: Optional[Callable[[], float]] = None):
        self.window_seconds = window_seconds
        self._clock = clock or time.monotonic
        self._windows: Dict[Tuple[str, str], Tuple[float, int]] = {}
        self._last_sweep = self._clock()

    async def check(self, owner_id: str, action: str, limit: int) -> None:
        if limit <= 0:
            return

        now = self._clock()
        self._sweep(now)
        key = (owner_id, action)
        started, count = self._windows.get(key, (now, 0))
        if now - started >= self.window_seconds:
            started, count = now, 0

        count += 1
        self._windows[key] = (started, count)

        if count > limit:
            retry_after = self.window_seconds - (now - started)
            logger.warning(f"Rate limit hit: owner={owner_id} action={action} count={count}/{limit}")
            raise RateLimitExceeded(owner_id, action, retry_after)

    def _sweep(self, now: float):
        """Drop windows that have ended, at most once per window."""
        if now - self._last_sweep < self.window_seconds:
            return
        self._windows = {
            key: window
            for key, window in self._windows.items()
            if now - window[0] < self.window_seconds
        }
        self._last_sweep = now


class RedisRateLimiter:
    """Fixed-window counters in Redis (INCR + EXPIRE), shared across instances."""

    def __init__(
        self,
        client: aioredis.Redis,
        window_seconds: float = 60.0,
        key_prefix: str = "memory_graph:rate:",
    ):
        self.client = client
        self.window_seconds = window_seconds
        self._key_prefix = key_prefix

    @classmethod
    def from_url(cls, url: str, **kwargs) -> "RedisRateLimiter":
        return cls(aioredis.from_url(url), **kwargs)

    def _get_key(self, owner_id: str, action: str) -> str:
        window = int(time.time() // self.window_seconds)
        return f"{self._key_prefix}{action}:{owner_id}:{window}"

    async def check(self, owner_id: str, action: str, limit: int) -> None:
        if limit <= 0:
            return

        key = self._get_key(owner_id, action)
        try:
            pipeline = self.client.pipeline()
            pipeline.incr(key)
            pipeline.expire(key, int(self.window_seconds) + 1)
            count, _ = await pipeline.execute()
        except RedisError as e:
            raise UpstreamError(f"Rate limiter unavailable: {e}", source="redis") from e

        if count > limit:
            retry_after = self.window_seconds - (time.time() % self.window_seconds)
            logger.warning(f"Rate limit hit: owner={owner_id} action={action} count={count}/{limit}")
            raise RateLimitExceeded(owner_id, action, retry_after)
