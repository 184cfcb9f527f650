"""
Request Director

Turns an inbound proxy request into a safe outbound request, and rewrites
the destination's response before it goes back to the caller.
"""

from typing import Optional
import structlog

from metaproxy.constants import RESERVED_VALUE_PREFIX
from metaproxy.domain.messages import InboundRequest, OutboundRequest, ProxyResponse
from metaproxy.infrastructure.credentials import CredentialStore
from metaproxy.proxy.allowlist import AllowListSupplier, HostValidator
from metaproxy.proxy.auth import AuthResolver
from metaproxy.proxy.cookies import isolate_cookies, rewrite_response_cookies
from metaproxy.proxy.destination import resolve_destination
from metaproxy.proxy.sanitizer import enforce_deny_list, sanitize_headers
from metaproxy.signing.base import SignerRegistry

logger = structlog.get_logger(__name__)


class RequestDirector:
    """
    Per-request transformation pipeline.

    1. Resolve the destination embedded in the path
    2. Validate its host against the current allow-list
    3. Copy headers minus the deny-list
    4. Resolve the outbound Authorization, then re-apply the deny-list
    5. Swap session cookies for side-channel cookies

    Any DirectorError raised here means the request must not be forwarded.
    """

    def __init__(
        self,
        prefix: str,
        allow_list: AllowListSupplier,
        credentials: CredentialStore,
        signers: Optional[SignerRegistry] = None,
        reserved_value_prefix: str = RESERVED_VALUE_PREFIX,
    ):
        self.prefix = prefix
        self.validator = HostValidator(allow_list)
        self.auth = AuthResolver(credentials, signers)
        self.reserved_value_prefix = reserved_value_prefix

    async def direct(self, inbound: InboundRequest) -> OutboundRequest:
        """
        Build the outbound request.

        Raises:
            DestinationParseError: If the embedded destination is invalid
            HostNotAllowedError: If the destination host is not allowed
            SigningError: If delegated credential signing fails
        """
        destination = resolve_destination(inbound.path, self.prefix, inbound.query)

        await self.validator.validate(destination.host)

        outbound = OutboundRequest(
            method=inbound.method,
            destination=destination,
            headers=sanitize_headers(
                inbound.headers,
                destination,
                tls=inbound.tls,
                reserved_prefix=self.reserved_value_prefix,
            ),
            body=inbound.body,
        )

        await self.auth.resolve(inbound.headers, outbound)
        enforce_deny_list(outbound.headers, destination)

        isolate_cookies(outbound.headers)

        logger.debug(
            "request_directed",
            method=outbound.method,
            scheme=destination.scheme,
            host=destination.host,
            path=destination.path,
        )
        return outbound

    def rewrite_response(self, response: ProxyResponse) -> ProxyResponse:
        """Relocate destination cookies into the side-channel header."""
        rewrite_response_cookies(response.headers)
        return response
