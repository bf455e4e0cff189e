"""Keyed locks used to serialize session mutations and report synthesis.

``MemoryLockProvider`` is enough for a single worker process. When the API
runs with several workers, ``RedisLockProvider`` gives the same guarantees
across processes.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncContextManager, AsyncIterator, Protocol

import redis.asyncio as redis
from redis.exceptions import LockError

from interview_guide.core.config import settings

logger = logging.getLogger(__name__)


class LockProvider(Protocol):
    def hold(self, key: str) -> AsyncContextManager[None]:
        ...


class MemoryLockProvider:
    """In-process keyed asyncio locks, dropped once nobody holds or waits."""

    def __init__(self):
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._users[key] = self._users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if self._users[key] == 0:
                del self._users[key]
                self._locks.pop(key, None)


class RedisLockProvider:
    """Distributed locks backed by redis ``SET NX PX``."""

    def __init__(self, client: redis.Redis, timeout: float, prefix: str = "interview_guide:lock:"):
        self._client = client
        self._timeout = timeout
        self._prefix = prefix

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        lock = self._client.lock(
            f"{self._prefix}{key}",
            timeout=self._timeout,
            blocking_timeout=self._timeout,
        )
        acquired = await lock.acquire()
        if not acquired:
            raise LockError(f"Could not acquire lock {key}")
        try:
            yield
        finally:
            try:
                await lock.release()
            except LockError:
                # Lock expired while held; the work is already committed.
                logger.warning(f"Lock {key} expired before release")


# Report synthesis holds its lock across regrading, synthesis and reference answers
AI_PHASES_UNDER_LOCK = 3

_provider: LockProvider | None = None


def lock_timeout_seconds() -> float:
    """Redis lock lifetime, never shorter than the slowest locked AI path."""
    from interview_guide.services.ai.retry import RetryPolicy

    ai_bound = AI_PHASES_UNDER_LOCK * RetryPolicy.from_settings().worst_case_seconds()
    return max(float(settings.LOCK_TIMEOUT_SECONDS), ai_bound)


def get_lock_provider() -> LockProvider:
    """Return the process-wide lock provider selected by ``LOCK_BACKEND``."""
    global _provider
    if _provider is None:
        if settings.LOCK_BACKEND == "redis":
            from interview_guide.core.redis import RedisClient

            _provider = RedisLockProvider(
                RedisClient.get_client(), timeout=lock_timeout_seconds()
            )
        else:
            _provider = MemoryLockProvider()
    return _provider
