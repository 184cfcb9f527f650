"""
Credential Stores
Keyed secret lookup used by signers to resolve credential references.
"""

import json
from pathlib import Path
from typing import Dict, Mapping, Optional, Protocol, Union, runtime_checkable
import structlog

from metaproxy.domain.errors import CredentialNotFoundError
from metaproxy.infrastructure.persistence.redis_client import RedisClient

logger = structlog.get_logger(__name__)


@runtime_checkable
class CredentialStore(Protocol):
    """Looks up credential data by ``<namespace>:<name>`` id."""

    async def get(self, credential_id: str) -> Dict[str, str]:
        """
        Get the data fields of a credential.

        Raises:
            CredentialNotFoundError: If the credential does not exist
        """
        ...


class InMemoryCredentialStore:
    """Credential store backed by a dict, optionally loaded from a JSON file."""

    def __init__(self, credentials: Optional[Mapping[str, Mapping[str, str]]] = None):
        self._credentials: Dict[str, Dict[str, str]] = {
            key: dict(value) for key, value in (credentials or {}).items()
        }

    async def get(self, credential_id: str) -> Dict[str, str]:
        try:
            return dict(self._credentials[credential_id])
        except KeyError:
            raise CredentialNotFoundError(credential_id) from None

    def put(self, credential_id: str, data: Mapping[str, str]) -> None:
        self._credentials[credential_id] = dict(data)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "InMemoryCredentialStore":
        """
        Load credentials from a JSON file.

        The file maps ``<namespace>:<name>`` ids to objects of string fields:
        ``{"cattle-global-data:cc-abc": {"githubcredentialConfig-token": "..."}}``

        Raises:
            ValueError: If the file is not a mapping of id to string fields
        """
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError(f"{path}: expected an object of credentials")

        for credential_id, fields in data.items():
            if not isinstance(fields, dict) or not all(
                isinstance(v, str) for v in fields.values()
            ):
                raise ValueError(f"{path}: credential {credential_id!r} must map fields to strings")

        logger.info("credentials_loaded", path=str(path), credentials=len(data))
        return cls(data)


class RedisCredentialStore:
    """
    Credential store reading Redis hashes.

    Each credential is a hash at ``<key_prefix><namespace>:<name>``.
    """

    def __init__(self, client: RedisClient, key_prefix: str = "metaproxy:credentials:"):
        self.client = client
        self.key_prefix = key_prefix

    async def get(self, credential_id: str) -> Dict[str, str]:
        data = await self.client.hgetall(f"{self.key_prefix}{credential_id}")
        if not data:
            raise CredentialNotFoundError(credential_id)
        return dict(data)
