"""
Reserved header names and the header deny-list.
"""

FORWARD_PROTO = "X-Forwarded-Proto"
API_AUTH = "X-API-Auth-Header"
CATTLE_AUTH = "X-API-CattleAuth-Header"
AUTH_HEADER = "Authorization"
SET_COOKIE = "Set-Cookie"
COOKIE = "Cookie"
API_SET_COOKIE = "X-Api-Set-Cookie-Header"
API_COOKIE = "X-Api-Cookie-Header"

# Escapes header values that would otherwise collide with protected values.
RESERVED_VALUE_PREFIX = "rancher:"

# Never copied from the caller: framing headers of the old connection,
# credentials re-derived by the auth resolver, and spoofable internal headers.
DENIED_HEADERS: frozenset[str] = frozenset({
    "host",
    "transfer-encoding",
    "content-length",
    API_AUTH.lower(),
    CATTLE_AUTH.lower(),
    "cf-connecting-ip",
    "cf-ray",
    "impersonate-user",
    "impersonate-group",
})
