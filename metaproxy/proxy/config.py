"""
Proxy Configuration

Configuration for the MetaProxy gateway.
"""

import os
from dataclasses import dataclass, field
from typing import List, Optional
from enum import Enum

from metaproxy.constants import RESERVED_VALUE_PREFIX


class AllowListSource(str, Enum):
    """Where destination host patterns come from."""

    STATIC = "static"  # PROXY_ALLOWED_HOSTS / --allow
    REDIS = "redis"  # Shared Redis list, re-read per request


class CredentialSource(str, Enum):
    """Where signers look up credentials."""

    MEMORY = "memory"  # In-process store, filled from PROXY_CREDENTIALS_FILE
    REDIS = "redis"  # Redis hashes


def _split_hosts(value: str) -> List[str]:
    return [h.strip() for h in value.split(",") if h.strip()]


@dataclass
class ProxyConfig:
    """
    Configuration for the MetaProxy gateway.

    Attributes:
        listen_host: Host to bind the proxy server to
        listen_port: Port to listen on
        prefix: Path marker after which the destination is embedded
        allowed_hosts: Static allow-list patterns
        allow_list_source: Where the allow-list is read from
        credential_source: Where signers look up credentials
        credentials_file: JSON credentials loaded into the memory store
        request_timeout: Timeout for destination requests
        connect_timeout: Timeout for connecting to destinations
        max_request_size: Maximum allowed request body size
        reserved_value_prefix: Prefix stripped from forwarded header values
    """

    # Server binding
    listen_host: str = "0.0.0.0"
    listen_port: int = 8080

    # Routing
    prefix: str = "/meta/proxy/"

    # Collaborators
    allowed_hosts: List[str] = field(default_factory=list)
    allow_list_source: AllowListSource = AllowListSource.STATIC
    credential_source: CredentialSource = CredentialSource.MEMORY
    credentials_file: Optional[str] = None

    # Timeouts and limits
    request_timeout: float = 30.0
    connect_timeout: float = 5.0
    max_request_size: int = 10 * 1024 * 1024  # 10MB

    # Header handling
    reserved_value_prefix: str = RESERVED_VALUE_PREFIX

    # Logging
    log_requests: bool = True

    @classmethod
    def from_env(cls) -> "ProxyConfig":
        """Create configuration from environment variables."""
        config = cls()

        # Server binding
        config.listen_host = os.getenv("PROXY_HOST", "0.0.0.0")
        config.listen_port = int(os.getenv("PROXY_PORT", "8080"))

        config.prefix = os.getenv("PROXY_PREFIX", config.prefix)

        # Format: api.example.com,*.amazonaws.com
        config.allowed_hosts = _split_hosts(os.getenv("PROXY_ALLOWED_HOSTS", ""))

        config.allow_list_source = AllowListSource(
            os.getenv("PROXY_ALLOW_LIST_SOURCE", "static").lower()
        )
        config.credential_source = CredentialSource(
            os.getenv("PROXY_CREDENTIAL_SOURCE", "memory").lower()
        )
        config.credentials_file = os.getenv("PROXY_CREDENTIALS_FILE") or None

        config.request_timeout = float(os.getenv("PROXY_REQUEST_TIMEOUT", "30"))
        config.connect_timeout = float(os.getenv("PROXY_CONNECT_TIMEOUT", "5"))
        config.max_request_size = int(
            os.getenv("PROXY_MAX_REQUEST_SIZE", str(config.max_request_size))
        )

        config.log_requests = os.getenv("PROXY_LOG_REQUESTS", "true").lower() == "true"

        return config

    @property
    def uses_redis(self) -> bool:
        return (
            self.allow_list_source == AllowListSource.REDIS
            or self.credential_source == CredentialSource.REDIS
        )

    def validate(self, require_allowed_hosts: bool = True) -> List[str]:
        """Validate configuration and return list of errors."""
        errors = []

        if not self.prefix.startswith("/"):
            errors.append("Prefix must start with '/'")

        if (
            require_allowed_hosts
            and self.allow_list_source == AllowListSource.STATIC
            and not self.allowed_hosts
        ):
            errors.append("Static allow-list source requires at least one allowed host")

        if self.credentials_file:
            if self.credential_source != CredentialSource.MEMORY:
                errors.append("Credentials file is only used by the memory credential source")
            elif not os.path.isfile(self.credentials_file):
                errors.append(f"Credentials file not found: {self.credentials_file}")

        if self.request_timeout <= 0 or self.connect_timeout <= 0:
            errors.append("Timeouts must be positive")

        if self.max_request_size <= 0:
            errors.append("Max request size must be positive")

        return errors
