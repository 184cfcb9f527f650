"""
MetaProxy Gateway

HTTP surface of the proxy: receives requests with an embedded destination,
runs them through the director, forwards the allowed ones and returns the
rewritten response.
"""

import re
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, AsyncGenerator, Dict, Optional
import structlog
import httpx

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse

from metaproxy.config.settings import Settings, get_settings
from metaproxy.domain.errors import DirectorError
from metaproxy.domain.headers import Headers
from metaproxy.domain.messages import InboundRequest, ProxyResponse
from metaproxy.infrastructure.allowlists import RedisAllowList
from metaproxy.infrastructure.credentials import (
    CredentialStore,
    InMemoryCredentialStore,
    RedisCredentialStore,
)
from metaproxy.infrastructure.persistence.redis_client import (
    RedisClient,
    close_redis,
    get_redis_client,
)
from metaproxy.proxy.allowlist import AllowListSupplier, StaticAllowList
from metaproxy.proxy.config import AllowListSource, CredentialSource, ProxyConfig
from metaproxy.proxy.director import RequestDirector
from metaproxy.proxy.forwarder import DestinationForwarder
from metaproxy.signing.base import SignerRegistry

logger = structlog.get_logger(__name__)

_REPEATED_SLASHES = re.compile(r"/{2,}")


def clean_path(path: str) -> str:
    """Collapse repeated slashes, as ingress path cleaning does."""
    return _REPEATED_SLASHES.sub("/", path)


class ProxyGateway:
    """
    MetaProxy Gateway.

    Acts as a request director in front of arbitrary destinations:
    1. Extracts the destination embedded in the request path
    2. Rejects destinations outside the allow-list
    3. Sanitizes headers and resolves credentials
    4. Forwards the request and relocates destination cookies
    """

    def __init__(
        self,
        config: ProxyConfig,
        allow_list: Optional[AllowListSupplier] = None,
        credentials: Optional[CredentialStore] = None,
        forwarder: Optional[DestinationForwarder] = None,
        signers: Optional[SignerRegistry] = None,
        settings: Optional[Settings] = None,
    ):
        self.config = config
        self.settings = settings or get_settings()

        self._redis: Optional[RedisClient] = None
        if config.uses_redis and (allow_list is None or credentials is None):
            self._redis = get_redis_client(
                host=self.settings.redis.host,
                port=self.settings.redis.port,
                password=self.settings.redis.password,
                db=self.settings.redis.db,
            )

        self.allow_list = allow_list or self._build_allow_list()
        self.credentials = credentials or self._build_credentials()

        self.director = RequestDirector(
            prefix=config.prefix,
            allow_list=self.allow_list,
            credentials=self.credentials,
            signers=signers,
            reserved_value_prefix=config.reserved_value_prefix,
        )

        self.forwarder = forwarder or DestinationForwarder(
            request_timeout=config.request_timeout,
            connect_timeout=config.connect_timeout,
        )

        # FastAPI app for the proxy
        self.app: Optional[FastAPI] = None

        # Statistics
        self._stats = {
            "total_requests": 0,
            "rejected_requests": 0,
            "forwarded_requests": 0,
            "failed_forwards": 0,
            "start_time": None,
        }

        logger.info(
            "proxy_gateway_created",
            prefix=config.prefix,
            allow_list_source=config.allow_list_source.value,
            credential_source=config.credential_source.value,
        )

    def _build_allow_list(self) -> AllowListSupplier:
        if self.config.allow_list_source == AllowListSource.REDIS:
            return RedisAllowList(self._redis, key=self.settings.redis.allowlist_key)
        return StaticAllowList(self.config.allowed_hosts)

    def _build_credentials(self) -> CredentialStore:
        if self.config.credential_source == CredentialSource.REDIS:
            return RedisCredentialStore(
                self._redis,
                key_prefix=self.settings.redis.credential_prefix,
            )
        if self.config.credentials_file:
            return InMemoryCredentialStore.from_file(self.config.credentials_file)
        logger.warning("memory_credential_store_empty")
        return InMemoryCredentialStore()

    def create_app(self) -> FastAPI:
        """Create the FastAPI application for the proxy gateway."""

        @asynccontextmanager
        async def lifespan(app: FastAPI) -> AsyncGenerator:
            """Application lifespan manager."""
            logger.info("starting_proxy_gateway")
            self._stats["start_time"] = datetime.utcnow()

            if self._redis:
                await self._redis.connect()

            await self.forwarder.initialize()

            yield

            # Shutdown
            logger.info("shutting_down_proxy_gateway")
            await self.forwarder.shutdown()
            if self._redis:
                await close_redis()

        self.app = FastAPI(
            title="MetaProxy",
            description="Allow-listed request director for arbitrary destinations",
            version="0.1.0",
            lifespan=lifespan,
            docs_url=None,  # Disable docs in proxy mode
            redoc_url=None,
            openapi_url=None,
        )

        @self.app.get("/_proxy/status")
        async def proxy_status():
            """Get proxy gateway status."""
            return {
                "status": "running",
                "prefix": self.config.prefix,
                "stats": self.get_stats(),
            }

        @self.app.get("/_proxy/health")
        async def proxy_health():
            """Health check endpoint."""
            return {"status": "healthy"}

        # Catch-all route for proxying
        @self.app.api_route(
            "/{path:path}",
            methods=["GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS"],
        )
        async def proxy_request(request: Request, path: str):
            """Proxy all requests through the director."""
            return await self._handle_request(request)

        return self.app

    async def _handle_request(self, request: Request) -> Response:
        """
        Handle an incoming HTTP request.

        1. Build the inbound request
        2. Direct it, rejecting it on any director error
        3. Forward it and rewrite the response
        """
        self._stats["total_requests"] += 1

        body = await request.body()
        if len(body) > self.config.max_request_size:
            self._stats["rejected_requests"] += 1
            return JSONResponse(
                status_code=413,
                content={"error": "Request entity too large", "code": "REQUEST_TOO_LARGE"},
            )

        inbound = InboundRequest(
            method=request.method,
            path=clean_path(self._raw_path(request)),
            query=request.url.query,
            headers=Headers(request.headers.items()),
            tls=request.url.scheme == "https",
            body=body or None,
        )

        try:
            outbound = await self.director.direct(inbound)
        except DirectorError as e:
            self._stats["rejected_requests"] += 1
            logger.warning(
                "request_rejected",
                method=inbound.method,
                path=inbound.path,
                code=e.code,
                error=str(e),
            )
            return self._error_response(e.status_code, e.error, e.code, str(e))

        try:
            result = await self.forwarder.forward(outbound)
        except httpx.TimeoutException:
            self._stats["failed_forwards"] += 1
            return self._error_response(
                504,
                "Gateway Timeout",
                "PROXY_TIMEOUT",
                f"{outbound.destination.host} did not respond in time",
            )
        except httpx.HTTPError as e:
            self._stats["failed_forwards"] += 1
            logger.error("forward_failed", host=outbound.destination.host, error=str(e))
            return self._error_response(
                502,
                "Bad Gateway",
                "DESTINATION_UNAVAILABLE",
                f"could not reach {outbound.destination.host}",
            )

        self._stats["forwarded_requests"] += 1
        return self._build_response(self.director.rewrite_response(result))

    @staticmethod
    def _raw_path(request: Request) -> str:
        raw_path = request.scope.get("raw_path")
        if raw_path:
            return raw_path.split(b"?", 1)[0].decode("latin-1")
        return request.url.path

    @staticmethod
    def _build_response(result: ProxyResponse) -> Response:
        response = Response(content=result.body, status_code=result.status_code)
        for name, value in result.headers.multi_items():
            response.headers.append(name, value)
        return response

    @staticmethod
    def _error_response(status_code: int, error: str, code: str, details: str) -> JSONResponse:
        return JSONResponse(
            status_code=status_code,
            content={"error": error, "code": code, "details": details},
        )

    def get_stats(self) -> Dict[str, Any]:
        """Get gateway statistics."""
        uptime = None
        if self._stats["start_time"]:
            uptime = (datetime.utcnow() - self._stats["start_time"]).total_seconds()

        return {
            "total_requests": self._stats["total_requests"],
            "rejected_requests": self._stats["rejected_requests"],
            "forwarded_requests": self._stats["forwarded_requests"],
            "failed_forwards": self._stats["failed_forwards"],
            "uptime_seconds": uptime,
            "forwarder": self.forwarder.get_stats(),
        }


def create_proxy_app(
    config: Optional[ProxyConfig] = None,
    allow_list: Optional[AllowListSupplier] = None,
    credentials: Optional[CredentialStore] = None,
    forwarder: Optional[DestinationForwarder] = None,
) -> FastAPI:
    """
    Create a FastAPI application for the proxy gateway.

    Args:
        config: Proxy configuration (or load from environment)
        allow_list: Allow-list supplier overriding the configured source
        credentials: Credential store overriding the configured source
        forwarder: Forwarder overriding the default httpx-based one

    Returns:
        Configured FastAPI application
    """
    if config is None:
        config = ProxyConfig.from_env()

    # An injected allow-list stands in for the static hosts
    errors = config.validate(require_allowed_hosts=allow_list is None)
    if errors:
        logger.error("proxy_config_invalid", errors=errors)
        raise ValueError(f"Invalid proxy configuration: {errors}")

    gateway = ProxyGateway(
        config=config,
        allow_list=allow_list,
        credentials=credentials,
        forwarder=forwarder,
    )
    return gateway.create_app()
