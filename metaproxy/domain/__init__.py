"""
MetaProxy Domain Layer
Request-scoped models and errors shared by the director components.
"""

from metaproxy.domain.headers import Headers
from metaproxy.domain.messages import (
    Destination,
    InboundRequest,
    OutboundRequest,
    ProxyResponse,
)
from metaproxy.domain.errors import (
    CredentialNotFoundError,
    DestinationParseError,
    DirectorError,
    HostNotAllowedError,
    SigningError,
)

__all__ = [
    # Models
    "Headers",
    "Destination",
    "InboundRequest",
    "OutboundRequest",
    "ProxyResponse",
    # Errors
    "DirectorError",
    "DestinationParseError",
    "HostNotAllowedError",
    "SigningError",
    "CredentialNotFoundError",
]
