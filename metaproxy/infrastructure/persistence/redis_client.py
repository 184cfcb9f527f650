"""
Redis Client
Async Redis connection used for the shared allow-list and credential data.
"""

import os
from typing import Any, Optional
from contextlib import asynccontextmanager

import redis.asyncio as redis
from redis.asyncio import ConnectionPool
import structlog

logger = structlog.get_logger(__name__)


class RedisClient:
    """
    Async Redis client.

    Supports:
    - Hash reads/writes for credential data
    - List reads/writes for ordered allow-list patterns
    """

    def __init__(
        self,
        host: Optional[str] = None,
        port: Optional[int] = None,
        password: Optional[str] = None,
        db: int = 0,
    ):
        self.host = host or os.getenv("REDIS_HOST", "localhost")
        self.port = port or int(os.getenv("REDIS_PORT", 6379))
        self.password = password or os.getenv("REDIS_PASSWORD")
        self.db = db

        self._pool: Optional[ConnectionPool] = None
        self._client: Optional[redis.Redis] = None

    async def connect(self) -> None:
        """Establish connection to Redis."""
        try:
            self._pool = ConnectionPool(
                host=self.host,
                port=self.port,
                password=self.password,
                db=self.db,
                decode_responses=True,
                max_connections=20,
            )
            logger.info("connecting_to_redis", host=self.host, port=self.port)

            self._client = redis.Redis(connection_pool=self._pool)

            # Test connection
            await self._client.ping()
            logger.info("redis_connected")

        except Exception as e:
            logger.error("redis_connection_failed", error=str(e))
            raise

    async def disconnect(self) -> None:
        """Close Redis connection."""
        if self._client:
            await self._client.aclose()
            self._client = None
        if self._pool:
            await self._pool.disconnect()
            self._pool = None
        logger.info("redis_disconnected")

    @asynccontextmanager
    async def get_connection(self):
        """Context manager for Redis connection."""
        if not self._client:
            await self.connect()
        yield self._client

    # =========================================================================
    # Key Operations
    # =========================================================================

    async def delete(self, *keys: str) -> int:
        """Delete one or more keys."""
        async with self.get_connection() as client:
            return await client.delete(*keys)

    # =========================================================================
    # Hash Operations
    # =========================================================================

    async def hset(self, name: str, mapping: dict[str, Any]) -> int:
        """Set hash fields."""
        async with self.get_connection() as client:
            return await client.hset(name, mapping=mapping)

    async def hgetall(self, name: str) -> dict:
        """Get all fields in hash."""
        async with self.get_connection() as client:
            return await client.hgetall(name)

    # =========================================================================
    # List Operations
    # =========================================================================

    async def lrange(self, key: str, start: int, end: int) -> list:
        """Get range of list elements."""
        async with self.get_connection() as client:
            return await client.lrange(key, start, end)

    async def replace_list(self, key: str, values: list) -> None:
        """Replace a list's contents in one MULTI/EXEC transaction."""
        async with self.get_connection() as client:
            async with client.pipeline(transaction=True) as pipe:
                pipe.delete(key)
                if values:
                    pipe.rpush(key, *values)
                await pipe.execute()


# Singleton instance
_redis_client: Optional[RedisClient] = None


def get_redis_client(
    host: Optional[str] = None,
    port: Optional[int] = None,
    password: Optional[str] = None,
    db: int = 0,
) -> RedisClient:
    """Get or create Redis client singleton."""
    global _redis_client
    if _redis_client is None:
        _redis_client = RedisClient(host=host, port=port, password=password, db=db)
    return _redis_client


async def close_redis() -> None:
    """Close Redis connection."""
    global _redis_client
    if _redis_client:
        await _redis_client.disconnect()
        _redis_client = None
