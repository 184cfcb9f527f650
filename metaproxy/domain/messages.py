"""
Proxy Messages
Request-scoped request and response models passed through the director.
"""

from dataclasses import dataclass, field
from typing import Optional

from metaproxy.domain.headers import Headers


@dataclass
class InboundRequest:
    """
    A request as received by the gateway.

    Attributes:
        method: HTTP method
        path: Raw request path, containing the prefix and the embedded destination
        query: Raw query string, without the leading ``?``
        headers: Inbound headers
        tls: Whether the inbound connection was encrypted
        body: Request body, passed through untouched
    """

    method: str
    path: str
    query: str = ""
    headers: Headers = field(default_factory=Headers)
    tls: bool = False
    body: Optional[bytes] = None


@dataclass(frozen=True)
class Destination:
    """
    Resolved proxy destination.

    Attributes:
        scheme: ``http`` or ``https``
        host: Host as matched against the allow-list, including any port
        hostname: Host without the port
        path: Destination path
        query: Query string forwarded to the destination
    """

    scheme: str
    host: str
    hostname: str
    path: str = ""
    query: str = ""

    @property
    def url(self) -> str:
        """Get the full destination URL."""
        url = f"{self.scheme}://{self.host}{self.path}"
        if self.query:
            url = f"{url}?{self.query}"
        return url


@dataclass
class OutboundRequest:
    """A request ready to be handed to the transport."""

    method: str
    destination: Destination
    headers: Headers = field(default_factory=Headers)
    body: Optional[bytes] = None

    @property
    def url(self) -> str:
        return self.destination.url


@dataclass
class ProxyResponse:
    """A destination response on its way back to the caller."""

    status_code: int
    headers: Headers = field(default_factory=Headers)
    body: bytes = b""
