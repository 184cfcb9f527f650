import pytest

from conftest import PREFIX, make_inbound
from metaproxy.domain.errors import DestinationParseError, HostNotAllowedError, SigningError
from metaproxy.domain.headers import Headers
from metaproxy.domain.messages import ProxyResponse
from metaproxy.proxy.allowlist import StaticAllowList
from metaproxy.proxy.director import RequestDirector
from metaproxy.signing.base import SignerRegistry


@pytest.mark.asyncio
async def test_directs_to_embedded_destination(director):
    inbound = make_inbound(
        f"{PREFIX}https:/api.example.com/v1/users",
        query="page=2",
        headers=[("Accept", "application/json"), ("Host", "rancher.local")],
        method="POST",
        body=b'{"a": 1}',
    )

    outbound = await director.direct(inbound)

    assert outbound.method == "POST"
    assert outbound.url == "https://api.example.com/v1/users?page=2"
    assert outbound.body == b'{"a": 1}'
    assert outbound.headers.get_all("Host") == ["api.example.com"]
    assert outbound.headers.get("Accept") == "application/json"


@pytest.mark.asyncio
async def test_disallowed_host_rejected_before_signing(allow_list, credentials, recording_signer):
    director = RequestDirector(
        prefix=PREFIX,
        allow_list=allow_list,
        credentials=credentials,
        signers=SignerRegistry([recording_signer]),
    )
    inbound = make_inbound(
        f"{PREFIX}https:/169.254.169.254/latest/meta-data",
        headers=[("X-API-CattleAuth-Header", "recorded credID=ns:name")],
    )

    with pytest.raises(HostNotAllowedError) as exc_info:
        await director.direct(inbound)

    assert exc_info.value.host == "169.254.169.254"
    assert recording_signer.calls == []


@pytest.mark.asyncio
async def test_host_with_port_matched_including_port(director):
    outbound = await director.direct(make_inbound(f"{PREFIX}https:/localhost:8443/healthz"))
    assert outbound.destination.host == "localhost:8443"
    assert outbound.headers.get("Host") == "localhost"

    with pytest.raises(HostNotAllowedError):
        await director.direct(make_inbound(f"{PREFIX}https:/localhost:9443/healthz"))


@pytest.mark.asyncio
async def test_missing_prefix_is_parse_error(director):
    with pytest.raises(DestinationParseError) as exc_info:
        await director.direct(make_inbound("/other/https:/api.example.com"))
    assert exc_info.value.status_code == 400


@pytest.mark.asyncio
async def test_signing_failure_aborts(allow_list, credentials):
    director = RequestDirector(prefix=PREFIX, allow_list=allow_list, credentials=credentials)
    inbound = make_inbound(
        f"{PREFIX}https:/api.example.com/v1",
        headers=[("X-API-CattleAuth-Header", "bearer credID=cattle-global-data:missing passwordField=token")],
    )

    with pytest.raises(SigningError) as exc_info:
        await director.direct(inbound)
    assert exc_info.value.status_code == 401


@pytest.mark.asyncio
async def test_credential_headers_never_forwarded(director):
    inbound = make_inbound(
        f"{PREFIX}https:/api.example.com/v1",
        headers=[
            ("X-API-Auth-Header", "Bearer direct"),
            ("X-API-CattleAuth-Header", "bearer credID=cattle-global-data:cc-token passwordField=token"),
            ("Impersonate-User", "admin"),
            ("CF-Connecting-IP", "10.0.0.1"),
        ],
    )

    outbound = await director.direct(inbound)

    assert outbound.headers.get_all("Authorization") == ["Bearer direct"]
    assert "X-API-Auth-Header" not in outbound.headers
    assert "X-API-CattleAuth-Header" not in outbound.headers
    assert "Impersonate-User" not in outbound.headers
    assert "CF-Connecting-IP" not in outbound.headers


@pytest.mark.asyncio
async def test_signed_request_still_isolates_cookies(director):
    inbound = make_inbound(
        f"{PREFIX}https:/api.example.com/v1",
        headers=[
            ("Cookie", "R_SESS=session-token"),
            ("X-API-CattleAuth-Header", "bearer credID=cattle-global-data:cc-token passwordField=token"),
        ],
    )

    outbound = await director.direct(inbound)

    assert outbound.headers.get("Authorization") == "Bearer s3cr3t"
    assert "Cookie" not in outbound.headers


@pytest.mark.asyncio
async def test_side_channel_cookie_promoted(director):
    inbound = make_inbound(
        f"{PREFIX}https:/api.example.com/v1",
        headers=[
            ("Cookie", "R_SESS=session-token"),
            ("X-Api-Cookie-Header", "dest=1"),
        ],
    )

    outbound = await director.direct(inbound)

    assert outbound.headers.get_all("Cookie") == ["dest=1"]
    assert "X-Api-Cookie-Header" not in outbound.headers


@pytest.mark.asyncio
async def test_reserved_prefix_and_forwarded_proto(director):
    inbound = make_inbound(
        f"{PREFIX}https:/api.example.com/v1",
        headers=[("X-Token", "rancher:abc")],
        tls=True,
    )

    outbound = await director.direct(inbound)

    assert outbound.headers.get("X-Token") == "abc"
    assert outbound.headers.get("X-Forwarded-Proto") == "https"


@pytest.mark.asyncio
async def test_allow_list_changes_apply_to_next_request(credentials):
    allow_list = StaticAllowList(["api.example.com"])
    director = RequestDirector(prefix=PREFIX, allow_list=allow_list, credentials=credentials)
    inbound = make_inbound(f"{PREFIX}https:/api.example.com/v1")

    await director.direct(inbound)
    allow_list.replace(["other.example.com"])

    with pytest.raises(HostNotAllowedError):
        await director.direct(inbound)


def test_rewrite_response_relocates_set_cookie(director):
    response = ProxyResponse(
        status_code=200,
        headers=Headers([("Set-Cookie", "a=1"), ("Set-Cookie", "b=2")]),
    )

    rewritten = director.rewrite_response(response)

    assert "Set-Cookie" not in rewritten.headers
    assert rewritten.headers.get_all("X-Api-Set-Cookie-Header") == ["a=1", "b=2"]


@pytest.mark.asyncio
async def test_deny_list_reapplied_after_signing(allow_list, credentials):
    class HeaderWritingSigner:
        scheme = "writer"

        async def sign(self, request, store, reference):
            request.headers.set("Host", "spoofed.internal")
            request.headers.set("Impersonate-User", "admin")
            request.headers.set("Transfer-Encoding", "chunked")
            request.headers.set("X-Signed", "yes")

    director = RequestDirector(
        prefix=PREFIX,
        allow_list=allow_list,
        credentials=credentials,
        signers=SignerRegistry([HeaderWritingSigner()]),
    )
    inbound = make_inbound(
        f"{PREFIX}https:/api.example.com/v1",
        headers=[("X-API-CattleAuth-Header", "writer credID=ns:name")],
    )

    outbound = await director.direct(inbound)

    assert outbound.headers.get_all("Host") == ["api.example.com"]
    assert "Impersonate-User" not in outbound.headers
    assert "Transfer-Encoding" not in outbound.headers
    assert outbound.headers.get("X-Signed") == "yes"


@pytest.mark.asyncio
async def test_arbitrary_reference_cannot_target_reserved_headers(director):
    inbound = make_inbound(
        f"{PREFIX}https:/api.example.com/v1",
        headers=[(
            "X-API-CattleAuth-Header",
            "arbitrary credID=cattle-global-data:cc-basic "
            "headers=Impersonate-User=username,Host=password,Transfer-Encoding=username",
        )],
    )

    with pytest.raises(SigningError):
        await director.direct(inbound)
