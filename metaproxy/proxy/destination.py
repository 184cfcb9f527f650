"""
Destination Resolver

Extracts the destination URL embedded in an inbound request path.
"""

import re
from urllib.parse import urlsplit

from metaproxy.domain.errors import DestinationParseError
from metaproxy.domain.messages import Destination

# Upstream path cleaning collapses "scheme://" into "scheme:/".
_HTTP_START = re.compile(r"^http:/([^/])")
_HTTPS_START = re.compile(r"^https:/([^/])")


def restore_scheme(raw_tail: str) -> str:
    """
    Turn the text after the prefix back into an absolute URL.

    ``https:/host`` and ``http:/host`` get their double slash back; anything
    else is treated as ``host/path`` and defaults to https.
    """
    if _HTTPS_START.match(raw_tail):
        return _HTTPS_START.sub(r"https://\1", raw_tail, count=1)
    if _HTTP_START.match(raw_tail):
        return _HTTP_START.sub(r"http://\1", raw_tail, count=1)
    return "https://" + raw_tail


def resolve_destination(path: str, prefix: str, query: str = "") -> Destination:
    """
    Resolve the destination embedded in a request path.

    Args:
        path: Inbound request path
        prefix: Marker after which the destination begins
        query: Inbound query string; always replaces any embedded query

    Returns:
        Resolved Destination

    Raises:
        DestinationParseError: If the prefix is missing or the URL is invalid
    """
    index = path.find(prefix)
    if index < 0:
        raise DestinationParseError(f"path does not contain prefix {prefix!r}")

    dest = restore_scheme(path[index + len(prefix):])

    try:
        parts = urlsplit(dest)
        # Accessing port validates it
        parts.port
    except ValueError as e:
        raise DestinationParseError(f"invalid destination {dest!r}: {e}") from e

    host = parts.netloc.rpartition("@")[2]
    hostname = parts.hostname or ""
    if not hostname:
        raise DestinationParseError(f"invalid destination {dest!r}: missing host")

    return Destination(
        scheme=parts.scheme,
        host=host,
        hostname=hostname,
        path=parts.path,
        query=query,
    )
