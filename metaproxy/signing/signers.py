"""
Credential Signers

Signing schemes selectable through the Cattle auth header:

- ``bearer``: Authorization: Bearer <secret>
- ``basic``: Authorization: Basic base64(user:password)
- ``arbitrary``: sets caller-named headers from credential fields
- ``awsv4``: AWS Signature Version 4
"""

import base64
import hashlib
import hmac
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Tuple
from urllib.parse import parse_qsl, quote, unquote
import structlog

from metaproxy.constants import AUTH_HEADER, COOKIE, DENIED_HEADERS
from metaproxy.domain.errors import SigningError
from metaproxy.domain.messages import OutboundRequest
from metaproxy.infrastructure.credentials import CredentialStore
from metaproxy.signing.base import SignerRegistry, get_auth_data, secret_field

logger = structlog.get_logger(__name__)


class BearerSigner:
    """Sends a stored token as a bearer credential."""

    scheme = "bearer"

    async def sign(
        self,
        request: OutboundRequest,
        store: CredentialStore,
        reference: str,
    ) -> None:
        params, secret = await get_auth_data(reference, store, ["passwordField"])
        token = secret_field(secret, params["passwordField"])
        request.headers.set(AUTH_HEADER, f"Bearer {token}")


class BasicSigner:
    """Sends a stored username and password as HTTP basic auth."""

    scheme = "basic"

    async def sign(
        self,
        request: OutboundRequest,
        store: CredentialStore,
        reference: str,
    ) -> None:
        params, secret = await get_auth_data(
            reference, store, ["usernameField", "passwordField"]
        )
        username = secret_field(secret, params["usernameField"])
        password = secret_field(secret, params["passwordField"])
        encoded = base64.b64encode(f"{username}:{password}".encode()).decode()
        request.headers.set(AUTH_HEADER, f"Basic {encoded}")


# Names a credential may never be written into.
_ARBITRARY_RESERVED = DENIED_HEADERS | {AUTH_HEADER.lower(), COOKIE.lower()}


class ArbitrarySigner:
    """
    Copies credential fields into caller-named headers.

    Reference parameter ``headers`` lists ``Header=field`` pairs separated
    by commas, e.g. ``headers=X-Api-Key=apiKey,X-Api-Secret=apiSecret``.
    Deny-listed names, Authorization and Cookie are refused.
    """

    scheme = "arbitrary"

    async def sign(
        self,
        request: OutboundRequest,
        store: CredentialStore,
        reference: str,
    ) -> None:
        params, secret = await get_auth_data(reference, store, ["headers"])

        for pair in params["headers"].split(","):
            header, sep, field = pair.partition("=")
            if not sep or not header or not field:
                raise SigningError(f"malformed header mapping {pair!r}")
            if header.lower() in _ARBITRARY_RESERVED:
                raise SigningError(f"header {header!r} cannot be set from a credential")
            request.headers.set(header, secret_field(secret, field))


# Headers included in the AWS signature; everything else is sent unsigned.
_AWS_SIGNED_HEADERS = {"host", "content-type", "date"}
_AWS_ALGORITHM = "AWS4-HMAC-SHA256"
_AWS_DEFAULT_REGION = "us-east-1"


def _hmac_sha256(key: bytes, msg: str) -> bytes:
    return hmac.new(key, msg.encode("utf-8"), hashlib.sha256).digest()


def aws_service_and_region(hostname: str) -> Tuple[str, str]:
    """
    Derive the AWS service and region from an endpoint hostname.

    ``ec2.us-west-2.amazonaws.com`` gives ``("ec2", "us-west-2")``;
    global endpoints such as ``iam.amazonaws.com`` use ``us-east-1``.
    """
    labels = hostname.lower().split(".")
    try:
        end = labels.index("amazonaws")
    except ValueError:
        return "", _AWS_DEFAULT_REGION

    labels = labels[:end]
    if not labels:
        return "", _AWS_DEFAULT_REGION

    service = labels[0]
    region = _AWS_DEFAULT_REGION
    for label in labels[1:]:
        if label.count("-") >= 2:
            region = label
            break
    return service, region


class AwsV4Signer:
    """
    Signs requests with AWS Signature Version 4.

    Credential fields ``accessKey`` and ``secretKey`` are required,
    ``sessionToken`` is sent when present. Reference parameters
    ``service`` and ``region`` override the values derived from the host.
    """

    scheme = "awsv4"

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    async def sign(
        self,
        request: OutboundRequest,
        store: CredentialStore,
        reference: str,
    ) -> None:
        params, secret = await get_auth_data(reference, store, [])
        access_key = secret_field(secret, "accessKey")
        secret_key = secret_field(secret, "secretKey")

        service, region = aws_service_and_region(request.destination.hostname)
        service = params.get("service") or service
        region = params.get("region") or region
        if not service:
            raise SigningError(
                f"cannot derive AWS service from host {request.destination.hostname!r}"
            )

        now = self._clock()
        amz_date = now.strftime("%Y%m%dT%H%M%SZ")
        date_stamp = now.strftime("%Y%m%d")

        payload_hash = hashlib.sha256(request.body or b"").hexdigest()

        headers = request.headers
        headers.set("X-Amz-Date", amz_date)
        headers.set("X-Amz-Content-Sha256", payload_hash)
        if secret.get("sessionToken"):
            headers.set("X-Amz-Security-Token", secret["sessionToken"])

        canonical_headers, signed_headers = self._canonical_headers(request)

        canonical_request = "\n".join([
            request.method.upper(),
            self._canonical_uri(request.destination.path),
            self._canonical_query(request.destination.query),
            canonical_headers,
            signed_headers,
            payload_hash,
        ])

        scope = f"{date_stamp}/{region}/{service}/aws4_request"
        string_to_sign = "\n".join([
            _AWS_ALGORITHM,
            amz_date,
            scope,
            hashlib.sha256(canonical_request.encode("utf-8")).hexdigest(),
        ])

        key = _hmac_sha256(f"AWS4{secret_key}".encode("utf-8"), date_stamp)
        key = _hmac_sha256(key, region)
        key = _hmac_sha256(key, service)
        key = _hmac_sha256(key, "aws4_request")
        signature = hmac.new(key, string_to_sign.encode("utf-8"), hashlib.sha256).hexdigest()

        headers.set(
            AUTH_HEADER,
            f"{_AWS_ALGORITHM} Credential={access_key}/{scope}, "
            f"SignedHeaders={signed_headers}, Signature={signature}",
        )
        logger.debug("aws_request_signed", service=service, region=region)

    @staticmethod
    def _canonical_uri(path: str) -> str:
        if not path:
            return "/"
        return quote(unquote(path), safe="/~")

    @staticmethod
    def _canonical_query(query: str) -> str:
        pairs = parse_qsl(query, keep_blank_values=True)
        encoded = sorted(
            (quote(k, safe="-_.~"), quote(v, safe="-_.~")) for k, v in pairs
        )
        return "&".join(f"{k}={v}" for k, v in encoded)

    @staticmethod
    def _canonical_headers(request: OutboundRequest) -> Tuple[str, str]:
        signed: Dict[str, List[str]] = {}
        for name, values in request.headers.items():
            lowered = name.lower()
            if lowered in _AWS_SIGNED_HEADERS or lowered.startswith("x-amz-"):
                signed.setdefault(lowered, []).extend(" ".join(v.split()) for v in values)

        names = sorted(signed)
        canonical = "".join(f"{name}:{','.join(signed[name])}\n" for name in names)
        return canonical, ";".join(names)


def default_registry() -> SignerRegistry:
    """Registry with every built-in signer."""
    return SignerRegistry([
        BearerSigner(),
        BasicSigner(),
        ArbitrarySigner(),
        AwsV4Signer(),
    ])
