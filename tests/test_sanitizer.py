import pytest

from metaproxy.constants import DENIED_HEADERS
from metaproxy.domain.headers import Headers
from metaproxy.domain.messages import Destination
from metaproxy.proxy.sanitizer import sanitize_headers, strip_reserved_prefix

DEST = Destination(scheme="https", host="api.example.com:8443", hostname="api.example.com", path="/v1")


@pytest.mark.parametrize(
    "name",
    [
        "Host",
        "Transfer-Encoding",
        "content-length",
        "X-API-Auth-Header",
        "x-api-cattleauth-header",
        "CF-Connecting-IP",
        "Cf-Ray",
        "Impersonate-User",
        "IMPERSONATE-GROUP",
    ],
)
def test_denied_headers_never_copied(name):
    inbound = Headers([(name, "value"), ("Accept", "*/*")])
    outbound = sanitize_headers(inbound, DEST)

    if name.lower() == "host":
        assert outbound.get_all(name) == ["api.example.com"]
    else:
        assert name not in outbound
    assert outbound.get("Accept") == "*/*"


def test_deny_list_covers_every_reserved_name():
    assert DENIED_HEADERS == {
        "host",
        "transfer-encoding",
        "content-length",
        "x-api-auth-header",
        "x-api-cattleauth-header",
        "cf-connecting-ip",
        "cf-ray",
        "impersonate-user",
        "impersonate-group",
    }


def test_host_is_destination_hostname():
    inbound = Headers([("Host", "proxy.internal")])
    outbound = sanitize_headers(inbound, DEST)
    assert outbound.get_all("Host") == ["api.example.com"]


def test_reserved_prefix_stripped_from_each_value():
    inbound = Headers([
        ("X-Custom", "rancher:abc"),
        ("X-Custom", "plain"),
        ("X-Other", "not-rancher:abc"),
    ])
    outbound = sanitize_headers(inbound, DEST)

    assert outbound.get_all("X-Custom") == ["abc", "plain"]
    assert outbound.get("X-Other") == "not-rancher:abc"


def test_strip_reserved_prefix_only_once():
    assert strip_reserved_prefix("rancher:rancher:abc") == "rancher:abc"
    assert strip_reserved_prefix("abc", prefix="") == "abc"


def test_multi_valued_headers_keep_order():
    inbound = Headers([("Accept", "text/html"), ("Accept", "application/json")])
    outbound = sanitize_headers(inbound, DEST)
    assert outbound.get_all("Accept") == ["text/html", "application/json"]


def test_forwarded_proto_set_for_tls():
    outbound = sanitize_headers(Headers(), DEST, tls=True)
    assert outbound.get("X-Forwarded-Proto") == "https"


def test_forwarded_proto_absent_without_tls():
    outbound = sanitize_headers(Headers(), DEST, tls=False)
    assert "X-Forwarded-Proto" not in outbound


def test_caller_forwarded_proto_replaced_on_tls():
    inbound = Headers([("X-Forwarded-Proto", "http")])
    outbound = sanitize_headers(inbound, DEST, tls=True)
    assert outbound.get_all("X-Forwarded-Proto") == ["https"]


def test_inbound_headers_not_mutated():
    inbound = Headers([("X-API-Auth-Header", "tok"), ("X-Custom", "rancher:abc")])
    sanitize_headers(inbound, DEST)
    assert inbound.get("X-API-Auth-Header") == "tok"
    assert inbound.get("X-Custom") == "rancher:abc"
