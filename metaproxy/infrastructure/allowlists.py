"""
Redis Allow-List
Allow-list supplier reading host patterns shared through Redis.
"""

from typing import List
import structlog

from metaproxy.infrastructure.persistence.redis_client import RedisClient

logger = structlog.get_logger(__name__)


class RedisAllowList:
    """
    Allow-list stored as a Redis list.

    Patterns are read with ``LRANGE key 0 -1`` on every call, so list order
    is match order and removals apply to the next request.
    """

    def __init__(self, client: RedisClient, key: str = "metaproxy:allowed-hosts"):
        self.client = client
        self.key = key

    async def current_patterns(self) -> List[str]:
        return list(await self.client.lrange(self.key, 0, -1))

    async def publish(self, patterns: List[str]) -> None:
        """Atomically replace the stored pattern list."""
        await self.client.replace_list(self.key, list(patterns))
        logger.info("allow_list_published", key=self.key, patterns=len(patterns))
