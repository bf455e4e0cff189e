"""Shared redis client, used by the distributed lock backend."""

import logging
from typing import Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from interview_guide.core.config import settings

logger = logging.getLogger(__name__)


class RedisClient:
    """Process-wide redis connection pool, created on first use."""

    _instance: Optional[redis.Redis] = None

    @classmethod
    def get_client(cls) -> redis.Redis:
        if cls._instance is None:
            cls._instance = redis.from_url(
                settings.REDIS_URL,
                socket_connect_timeout=5,
                socket_keepalive=True,
                health_check_interval=30,
            )
        return cls._instance

    @classmethod
    async def ping(cls) -> bool:
        """Whether redis answers; only meaningful with the redis lock backend."""
        try:
            return bool(await cls.get_client().ping())
        except RedisError as e:
            logger.warning(f"Redis ping failed: {e}")
            return False

    @classmethod
    async def close(cls) -> None:
        if cls._instance is not None:
            await cls._instance.aclose()
            cls._instance = None
