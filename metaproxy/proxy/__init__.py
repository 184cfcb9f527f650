"""
MetaProxy Proxy Module

Directs requests with an embedded destination to allow-listed hosts,
rewriting headers, credentials and cookies on the way.
"""

from metaproxy.proxy.allowlist import AllowListSupplier, HostValidator, StaticAllowList, is_allowed
from metaproxy.proxy.config import ProxyConfig
from metaproxy.proxy.director import RequestDirector
from metaproxy.proxy.forwarder import DestinationForwarder
from metaproxy.proxy.gateway import ProxyGateway, create_proxy_app

__all__ = [
    "AllowListSupplier",
    "HostValidator",
    "StaticAllowList",
    "is_allowed",
    "ProxyConfig",
    "RequestDirector",
    "DestinationForwarder",
    "ProxyGateway",
    "create_proxy_app",
]
