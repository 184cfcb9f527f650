"""
MetaProxy Infrastructure Layer
Collaborators the director queries: allow-list sources and credential stores.
"""

from metaproxy.infrastructure.persistence import (
    RedisClient,
    get_redis_client,
    close_redis,
)
from metaproxy.infrastructure.allowlists import RedisAllowList
from metaproxy.infrastructure.credentials import (
    CredentialStore,
    InMemoryCredentialStore,
    RedisCredentialStore,
)

__all__ = [
    "RedisClient",
    "get_redis_client",
    "close_redis",
    "RedisAllowList",
    "CredentialStore",
    "InMemoryCredentialStore",
    "RedisCredentialStore",
]
