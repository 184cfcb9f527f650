import pytest

from conftest import RecordingSigner
from metaproxy.domain.errors import CredentialNotFoundError, SigningError
from metaproxy.domain.headers import Headers
from metaproxy.domain.messages import Destination, OutboundRequest
from metaproxy.proxy.auth import AuthResolver
from metaproxy.signing.base import SignerRegistry


def _outbound():
    dest = Destination(scheme="https", host="api.example.com", hostname="api.example.com")
    return OutboundRequest(method="GET", destination=dest, headers=Headers([("Host", "api.example.com")]))


@pytest.mark.asyncio
async def test_direct_bearer_wins_and_no_signer_invoked(credentials, recording_signer):
    resolver = AuthResolver(credentials, SignerRegistry([recording_signer]))
    inbound = Headers([
        ("X-API-Auth-Header", "tok1"),
        ("X-API-CattleAuth-Header", "recorded credID=ns:name"),
    ])
    request = _outbound()

    await resolver.resolve(inbound, request)

    assert request.headers.get_all("Authorization") == ["tok1"]
    assert recording_signer.calls == []


@pytest.mark.asyncio
async def test_matching_signer_invoked_exactly_once(credentials, recording_signer):
    resolver = AuthResolver(credentials, SignerRegistry([recording_signer]))
    reference = "Recorded credID=ns:name"
    request = _outbound()

    await resolver.resolve(Headers([("X-API-CattleAuth-Header", reference)]), request)

    assert len(recording_signer.calls) == 1
    called_request, called_store, called_reference = recording_signer.calls[0]
    assert called_request is request
    assert called_store is credentials
    assert called_reference == reference
    assert request.headers.get("Authorization") == "Signed by-recorder"


@pytest.mark.asyncio
async def test_signer_failure_raises_signing_error(credentials):
    failing = RecordingSigner(fail=True)
    resolver = AuthResolver(credentials, SignerRegistry([failing]))

    with pytest.raises(SigningError):
        await resolver.resolve(
            Headers([("X-API-CattleAuth-Header", "recorded credID=ns:name")]),
            _outbound(),
        )
    assert len(failing.calls) == 1


@pytest.mark.asyncio
async def test_unexpected_signer_exception_wrapped(credentials):
    class BrokenSigner:
        scheme = "broken"

        async def sign(self, request, store, reference):
            raise CredentialNotFoundError("ns:name")

    resolver = AuthResolver(credentials, SignerRegistry([BrokenSigner()]))

    with pytest.raises(SigningError) as exc_info:
        await resolver.resolve(
            Headers([("X-API-CattleAuth-Header", "broken credID=ns:name")]),
            _outbound(),
        )
    assert isinstance(exc_info.value.__cause__, CredentialNotFoundError)


@pytest.mark.asyncio
async def test_unmatched_reference_used_as_bearer(credentials, recording_signer):
    resolver = AuthResolver(credentials, SignerRegistry([recording_signer]))
    request = _outbound()

    await resolver.resolve(Headers([("X-API-CattleAuth-Header", "Token opaque-value")]), request)

    assert request.headers.get("Authorization") == "Token opaque-value"
    assert recording_signer.calls == []


@pytest.mark.asyncio
async def test_no_credential_headers_leaves_authorization_alone(credentials):
    resolver = AuthResolver(credentials)
    request = _outbound()
    request.headers.set("Authorization", "from-caller")

    await resolver.resolve(Headers([("Accept", "*/*")]), request)

    assert request.headers.get("Authorization") == "from-caller"


@pytest.mark.asyncio
async def test_empty_direct_bearer_falls_through_to_cattle_auth(credentials):
    resolver = AuthResolver(credentials)
    request = _outbound()

    await resolver.resolve(
        Headers([
            ("X-API-Auth-Header", ""),
            ("X-API-CattleAuth-Header", "bearer credID=cattle-global-data:cc-token passwordField=token"),
        ]),
        request,
    )

    assert request.headers.get("Authorization") == "Bearer s3cr3t"
