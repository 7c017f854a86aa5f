"""
Per-owner serialization of ingestion.

Concurrent ingestions for one owner must not both supersede the same
candidate or read a graph the other is halfway through rewriting. Different
owners never wait on each other.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncContextManager, AsyncIterator, Dict, Protocol

import redis.asyncio as aioredis
from redis.exceptions import LockError, RedisError

from memory_graph.exceptions import UpstreamError

logger = logging.getLogger(__name__)


class OwnerLocks(Protocol):
    def hold(self, owner_id: str) -> AsyncContextManager[None]:
        ...


class InMemoryOwnerLocks:
    """One asyncio.Lock per owner, dropped once nobody holds or awaits it."""

    def __init__(self):
        self._locks: Dict[str, asyncio.Lock] = {}
        self._users: Dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, owner_id: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(owner_id, asyncio.Lock())
        self._users[owner_id] = self._users.get(owner_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[owner_id] -= 1
            if self._users[owner_id] == 0:
                del self._users[owner_id]
                del self._locks[owner_id]

    def active_owners(self) -> int:
        return len(self._locks)


class RedisOwnerLocks:
    """
    Owner locks shared across service instances through Redis.

    Example:
        locks = RedisOwnerLocks.from_url("redis://localhost:6379/0")
        async with locks.hold("user_123"):
            ...
    """

    def __init__(
        self,
        client: aioredis.Redis,
        key_prefix: str = "memory_graph:lock:",
        lock_timeout: float = 120.0,
        blocking_timeout: float = 60.0,
    ):
        """
        Args:
            client: redis.asyncio client
            key_prefix: Prefix for lock keys
            lock_timeout: Seconds before a crashed holder's lock expires
            blocking_timeout: Seconds to wait for the lock before giving up
        """
        self.client = client
        self._key_prefix = key_prefix
        self._lock_timeout = lock_timeout
        self._blocking_timeout = blocking_timeout

    @classmethod
    def from_url(cls, url: str, **kwargs) -> "RedisOwnerLocks":
        return cls(aioredis.from_url(url), **kwargs)

    def _get_key(self, owner_id: str) -> str:
        return f"{self._key_prefix}{owner_id}"

    @asynccontextmanager
    async def hold(self, owner_id: str) -> AsyncIterator[None]:
        lock = self.client.lock(
            self._get_key(owner_id),
            timeout=self._lock_timeout,
            blocking_timeout=self._blocking_timeout,
        )
        try:
            acquired = await lock.acquire()
        except RedisError as e:
            raise UpstreamError(f"Failed to acquire owner lock: {e}", source="redis") from e
        if not acquired:
            raise UpstreamError(
                f"Timed out waiting for owner lock of {owner_id}", source="redis"
            )

        try:
            yield
        finally:
            try:
                await lock.release()
            except LockError as e:
                # Lock expired while held; the next holder already owns it
                logger.warning(f"Owner lock for {owner_id} expired before release: {e}")
