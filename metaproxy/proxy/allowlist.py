"""
Host Allow-List

Validates destination hosts against a dynamically supplied allow-list.
"""

from typing import Iterable, List, Protocol, Sequence, runtime_checkable
import structlog

from metaproxy.domain.errors import HostNotAllowedError

logger = structlog.get_logger(__name__)


@runtime_checkable
class AllowListSupplier(Protocol):
    """Source of the currently valid host patterns."""

    async def current_patterns(self) -> List[str]:
        """Return the current ordered host patterns."""
        ...


class StaticAllowList:
    """Allow-list backed by a fixed, in-memory pattern list."""

    def __init__(self, patterns: Iterable[str] = ()):
        self._patterns = list(patterns)

    async def current_patterns(self) -> List[str]:
        return list(self._patterns)

    def replace(self, patterns: Iterable[str]) -> None:
        """Swap in a new pattern list; takes effect on the next request."""
        self._patterns = list(patterns)


def is_allowed(host: str, patterns: Sequence[str]) -> bool:
    """
    Check a host against allow-list patterns.

    A pattern matches on exact equality, or, when it starts with ``*``,
    when the host ends with the rest of the pattern. ``*.example.com``
    matches ``api.example.com`` but not ``example.com``.
    """
    for pattern in patterns:
        if pattern == host:
            return True

        if pattern.startswith("*") and host.endswith(pattern[1:]):
            return True

    return False


class HostValidator:
    """
    Validates destination hosts.

    The supplier is queried on every call so a revoked pattern stops
    matching on the very next request.
    """

    def __init__(self, supplier: AllowListSupplier):
        self.supplier = supplier

    async def validate(self, host: str) -> None:
        """
        Raise unless the host is currently allowed.

        Raises:
            HostNotAllowedError: If no pattern matches
        """
        patterns = await self.supplier.current_patterns()
        if not is_allowed(host, patterns):
            logger.debug("host_not_allowed", host=host, patterns=len(patterns))
            raise HostNotAllowedError(host)
