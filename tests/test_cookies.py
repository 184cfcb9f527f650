from metaproxy.domain.headers import Headers
from metaproxy.proxy.cookies import isolate_cookies, rewrite_response_cookies


def test_session_cookie_dropped_without_side_channel():
    headers = Headers([("Cookie", "real=1")])
    isolate_cookies(headers)
    assert "Cookie" not in headers


def test_side_channel_cookie_promoted():
    headers = Headers([("Cookie", "real=1"), ("X-Api-Cookie-Header", "mine=2")])
    isolate_cookies(headers)

    assert headers.get_all("Cookie") == ["mine=2"]
    assert "X-Api-Cookie-Header" not in headers


def test_empty_side_channel_cookie_not_promoted():
    headers = Headers([("Cookie", "real=1"), ("X-Api-Cookie-Header", "")])
    isolate_cookies(headers)
    assert "Cookie" not in headers


def test_set_cookies_relocated_in_order():
    headers = Headers([
        ("Content-Type", "text/plain"),
        ("Set-Cookie", "a=1"),
        ("Set-Cookie", "b=2"),
    ])
    rewrite_response_cookies(headers)

    assert "Set-Cookie" not in headers
    assert headers.get_all("X-Api-Set-Cookie-Header") == ["a=1", "b=2"]
    assert headers.get("Content-Type") == "text/plain"


def test_destination_side_channel_header_discarded():
    headers = Headers([
        ("X-Api-Set-Cookie-Header", "forged=1"),
        ("Set-Cookie", "a=1; Path=/; HttpOnly"),
    ])
    rewrite_response_cookies(headers)
    assert headers.get_all("X-Api-Set-Cookie-Header") == ["a=1; Path=/; HttpOnly"]


def test_response_without_cookies_has_no_side_channel():
    headers = Headers([("X-Api-Set-Cookie-Header", "forged=1")])
    rewrite_response_cookies(headers)
    assert "X-Api-Set-Cookie-Header" not in headers
