"""
Auth Resolver

Decides the outbound Authorization header from the caller's credential headers.
"""

from typing import Optional
import structlog

from metaproxy.constants import API_AUTH, AUTH_HEADER, CATTLE_AUTH
from metaproxy.domain.errors import SigningError
from metaproxy.domain.headers import Headers
from metaproxy.domain.messages import OutboundRequest
from metaproxy.infrastructure.credentials import CredentialStore
from metaproxy.signing.base import SignerRegistry, parse_reference
from metaproxy.signing.signers import default_registry

logger = structlog.get_logger(__name__)


class AuthResolver:
    """
    Resolves outbound credentials.

    Decision order:
    1. A non-empty direct bearer header is sent verbatim as Authorization;
       the Cattle auth header is ignored.
    2. A non-empty Cattle auth header is handed to the matching signer, or
       sent verbatim as Authorization when no signer matches its scheme.
    3. Otherwise Authorization is left as it is.
    """

    def __init__(
        self,
        credentials: CredentialStore,
        signers: Optional[SignerRegistry] = None,
    ):
        self.credentials = credentials
        self.signers = signers if signers is not None else default_registry()

    async def resolve(self, inbound_headers: Headers, request: OutboundRequest) -> None:
        """
        Set authentication on the outbound request.

        Args:
            inbound_headers: Original caller headers, before sanitization
            request: Outbound request to mutate

        Raises:
            SigningError: If a matched signer fails
        """
        auth = inbound_headers.get(API_AUTH)
        cattle_auth = inbound_headers.get(CATTLE_AUTH)

        if auth:
            request.headers.set(AUTH_HEADER, auth)
            return

        if not cattle_auth:
            return

        signer = self.signers.resolve(cattle_auth)
        if signer is None:
            request.headers.set(AUTH_HEADER, cattle_auth)
            return

        try:
            await signer.sign(request, self.credentials, cattle_auth)
        except SigningError as e:
            self._log_failure(cattle_auth, request, e)
            raise
        except Exception as e:
            self._log_failure(cattle_auth, request, e)
            raise SigningError(f"{signer.scheme} signing failed: {e}") from e

    @staticmethod
    def _log_failure(reference: str, request: OutboundRequest, error: Exception) -> None:
        scheme, params = parse_reference(reference)
        logger.warning(
            "signing_failed",
            scheme=scheme,
            credential_id=params.get("credID"),
            host=request.destination.host,
            error=str(error),
        )
