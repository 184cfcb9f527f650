"""
Signer Contract and Registry

A Cattle auth reference names a signing scheme and the credential to sign
with, e.g. ``bearer credID=cattle-global-data:cc-abc passwordField=token``.
The registry maps the scheme token to a signer; unknown schemes fall back
to using the raw reference as the Authorization value.
"""

from typing import Dict, Iterable, List, Optional, Protocol, Tuple, runtime_checkable
import structlog

from metaproxy.domain.errors import CredentialNotFoundError, SigningError
from metaproxy.domain.messages import OutboundRequest
from metaproxy.infrastructure.credentials import CredentialStore

logger = structlog.get_logger(__name__)


@runtime_checkable
class Signer(Protocol):
    """Turns a credential reference into request authentication material."""

    scheme: str

    async def sign(
        self,
        request: OutboundRequest,
        store: CredentialStore,
        reference: str,
    ) -> None:
        """
        Add authentication headers to the outbound request.

        Raises:
            SigningError: If credentials cannot be resolved or signed
        """
        ...


def parse_reference(reference: str) -> Tuple[str, Dict[str, str]]:
    """
    Split a reference into its scheme token and ``key=value`` parameters.

    Tokens without ``=`` after the scheme are ignored.
    """
    tokens = reference.split()
    if not tokens:
        return "", {}

    params: Dict[str, str] = {}
    for token in tokens[1:]:
        key, sep, value = token.partition("=")
        if sep:
            params[key] = value
    return tokens[0], params


def normalize_credential(data: Dict[str, str]) -> Dict[str, str]:
    """
    Expose ``<driver>Config-<field>`` keys as ``<field>``.

    Keys that do not follow the pattern are kept as they are.
    """
    normalized: Dict[str, str] = {}
    for key, value in data.items():
        head, sep, field = key.partition("-")
        if sep and head.endswith("Config") and field and "-" not in field:
            normalized[field] = value
        else:
            normalized.setdefault(key, value)
    return normalized


async def get_auth_data(
    reference: str,
    store: CredentialStore,
    required: Iterable[str],
) -> Tuple[Dict[str, str], Dict[str, str]]:
    """
    Resolve the parameters and credential data behind a reference.

    Args:
        reference: Raw Cattle auth value
        store: Credential store to look the credential up in
        required: Parameters that must be present in the reference

    Returns:
        Tuple of (reference parameters, normalized credential data)

    Raises:
        SigningError: On missing parameters or an unknown credential
    """
    _, params = parse_reference(reference)

    missing = [key for key in ["credID", *required] if not params.get(key)]
    if missing:
        raise SigningError(f"{', '.join(missing)} not present in credential reference")

    credential_id = params["credID"]
    namespace, sep, name = credential_id.partition(":")
    if not sep or not namespace or not name:
        raise SigningError(f"credID must be <namespace>:<name>, got {credential_id!r}")

    try:
        data = await store.get(credential_id)
    except CredentialNotFoundError as e:
        raise SigningError(str(e)) from e

    return params, normalize_credential(data)


def secret_field(secret: Dict[str, str], field: str) -> str:
    """Get a credential field, failing signing when it is absent."""
    value = secret.get(field)
    if value is None:
        raise SigningError(f"credential has no field {field!r}")
    return value


class SignerRegistry:
    """Maps reference schemes (case-insensitive) to signers."""

    def __init__(self, signers: Iterable[Signer] = ()):
        self._signers: Dict[str, Signer] = {}
        for signer in signers:
            self.register(signer)

    def register(self, signer: Signer) -> None:
        self._signers[signer.scheme.lower()] = signer

    def resolve(self, reference: str) -> Optional[Signer]:
        """Find the signer for a reference, or None when no scheme matches."""
        scheme, _ = parse_reference(reference)
        return self._signers.get(scheme.lower())

    @property
    def schemes(self) -> List[str]:
        return sorted(self._signers)
