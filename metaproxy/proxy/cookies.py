"""
Cookie Isolation

Keeps the proxy's own session cookies away from destinations, and keeps
destination cookies from being set on the proxy's domain.
"""

from metaproxy.constants import API_COOKIE, API_SET_COOKIE, COOKIE, SET_COOKIE
from metaproxy.domain.headers import Headers


def isolate_cookies(headers: Headers) -> None:
    """
    Replace the caller's session cookies with its side-channel cookies.

    The real Cookie header is always dropped. A non-empty
    X-Api-Cookie-Header becomes the outbound Cookie header.
    """
    headers.delete(COOKIE)

    cookie = headers.get(API_COOKIE)
    if cookie:
        headers.set(COOKIE, cookie)
        headers.delete(API_COOKIE)


def rewrite_response_cookies(headers: Headers) -> None:
    """
    Move every Set-Cookie value into X-Api-Set-Cookie-Header.

    Values are relocated verbatim and in order; any side-channel header sent
    by the destination itself is discarded first.
    """
    headers.delete(API_SET_COOKIE)
    # There may be one Set-Cookie per cookie
    for set_cookie in headers.get_all(SET_COOKIE):
        headers.add(API_SET_COOKIE, set_cookie)
    headers.delete(SET_COOKIE)
