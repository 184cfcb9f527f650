"""
Header Sanitizer

Builds the outbound header set from the caller's headers.
"""

from typing import AbstractSet

from metaproxy.constants import DENIED_HEADERS, FORWARD_PROTO, RESERVED_VALUE_PREFIX
from metaproxy.domain.headers import Headers
from metaproxy.domain.messages import Destination


def strip_reserved_prefix(value: str, prefix: str = RESERVED_VALUE_PREFIX) -> str:
    if prefix and value.startswith(prefix):
        return value[len(prefix):]
    return value


def sanitize_headers(
    headers: Headers,
    destination: Destination,
    tls: bool = False,
    denied: AbstractSet[str] = DENIED_HEADERS,
    reserved_prefix: str = RESERVED_VALUE_PREFIX,
) -> Headers:
    """
    Copy inbound headers into a fresh outbound set.

    Args:
        headers: Original inbound headers
        destination: Resolved destination, supplies the outbound Host
        tls: Whether the inbound connection was encrypted
        denied: Lowercased header names that are never copied
        reserved_prefix: Prefix stripped from the start of every copied value

    Returns:
        New Headers for the outbound request
    """
    outbound = Headers()

    for name, values in headers.items():
        if name.lower() in denied:
            continue
        outbound.set_all(name, [strip_reserved_prefix(v, reserved_prefix) for v in values])

    outbound.set("Host", destination.hostname)

    if tls:
        outbound.set(FORWARD_PROTO, "https")

    return outbound


def enforce_deny_list(
    headers: Headers,
    destination: Destination,
    denied: AbstractSet[str] = DENIED_HEADERS,
) -> None:
    """Drop deny-listed headers added after the copy and restore the outbound Host."""
    for name in headers.names():
        if name.lower() in denied:
            headers.delete(name)
    headers.set("Host", destination.hostname)
