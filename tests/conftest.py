import pytest

from metaproxy.domain.errors import SigningError
from metaproxy.domain.headers import Headers
from metaproxy.domain.messages import InboundRequest
from metaproxy.infrastructure.credentials import InMemoryCredentialStore
from metaproxy.proxy.allowlist import StaticAllowList
from metaproxy.proxy.director import RequestDirector
from metaproxy.signing.base import SignerRegistry
from metaproxy.signing.signers import default_registry

PREFIX = "/meta/proxy/"


class RecordingSigner:
    """Signer double that records every call and can be told to fail."""

    def __init__(self, scheme="recorded", fail=False):
        self.scheme = scheme
        self.fail = fail
        self.calls = []

    async def sign(self, request, store, reference):
        self.calls.append((request, store, reference))
        if self.fail:
            raise SigningError("credential lookup failed")
        request.headers.set("Authorization", "Signed by-recorder")


class FakeRedisClient:
    """In-memory stand-in for RedisClient's list and hash operations."""

    def __init__(self):
        self.lists = {}
        self.hashes = {}
        self.replace_calls = 0

    async def lrange(self, key, start, end):
        items = self.lists.get(key, [])
        return items[start:] if end == -1 else items[start:end + 1]

    async def replace_list(self, key, values):
        self.replace_calls += 1
        self.lists[key] = list(values)

    async def delete(self, *keys):
        removed = 0
        for key in keys:
            removed += int(self.lists.pop(key, None) is not None)
            removed += int(self.hashes.pop(key, None) is not None)
        return removed

    async def hgetall(self, name):
        return dict(self.hashes.get(name, {}))

    async def hset(self, name, mapping):
        self.hashes.setdefault(name, {}).update(mapping)
        return len(mapping)


def make_inbound(path, query="", headers=None, tls=False, method="GET", body=None):
    return InboundRequest(
        method=method,
        path=path,
        query=query,
        headers=Headers(headers or []),
        tls=tls,
        body=body,
    )


@pytest.fixture
def allow_list():
    return StaticAllowList(["api.example.com", "*.amazonaws.com", "localhost:8443"])


@pytest.fixture
def credentials():
    return InMemoryCredentialStore({
        "cattle-global-data:cc-token": {
            "githubcredentialConfig-token": "s3cr3t",
        },
        "cattle-global-data:cc-basic": {
            "httpcredentialConfig-username": "admin",
            "httpcredentialConfig-password": "hunter2",
        },
        "cattle-global-data:cc-aws": {
            "amazonec2credentialConfig-accessKey": "AKIDEXAMPLE",
            "amazonec2credentialConfig-secretKey": "wJalrXUtnFEMI/K7MDENG+bPxRfiCYEXAMPLEKEY",
        },
    })


@pytest.fixture
def recording_signer():
    return RecordingSigner()


@pytest.fixture
def director(allow_list, credentials):
    return RequestDirector(prefix=PREFIX, allow_list=allow_list, credentials=credentials)


@pytest.fixture
def recording_director(allow_list, credentials, recording_signer):
    return RequestDirector(
        prefix=PREFIX,
        allow_list=allow_list,
        credentials=credentials,
        signers=SignerRegistry([recording_signer]),
    )


@pytest.fixture
def registry():
    return default_registry()
