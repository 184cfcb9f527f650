"""Infrastructure Persistence - Shared allow-list and credential storage."""

from metaproxy.infrastructure.persistence.redis_client import (
    RedisClient,
    get_redis_client,
    close_redis,
)

__all__ = [
    "RedisClient",
    "get_redis_client",
    "close_redis",
]
