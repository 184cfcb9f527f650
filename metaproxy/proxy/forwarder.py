"""
Destination Forwarder

Sends directed requests to their destination over a pooled HTTP client.
"""

from datetime import datetime
from typing import Any, Dict, Optional
import structlog
import httpx

from metaproxy.domain.headers import Headers
from metaproxy.domain.messages import OutboundRequest, ProxyResponse

logger = structlog.get_logger(__name__)

# Hop-by-hop headers, plus framing headers invalidated by httpx decoding the body.
_DROPPED_RESPONSE_HEADERS = frozenset({
    "connection",
    "keep-alive",
    "proxy-authenticate",
    "proxy-authorization",
    "te",
    "trailers",
    "transfer-encoding",
    "upgrade",
    "content-length",
    "content-encoding",
})

_DROPPED_REQUEST_HEADERS = frozenset({
    "connection",
    "keep-alive",
    "proxy-authenticate",
    "proxy-authorization",
    "te",
    "trailers",
    "upgrade",
})


class DestinationForwarder:
    """
    Forwards requests to arbitrary destinations.

    Features:
    - Connection pooling
    - Connect/read timeouts
    - Redirects are returned to the caller, never followed
    """

    def __init__(
        self,
        request_timeout: float = 30.0,
        connect_timeout: float = 5.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.request_timeout = request_timeout
        self.connect_timeout = connect_timeout

        # HTTP client
        self._client: Optional[httpx.AsyncClient] = client
        self._owns_client = client is None

        # Statistics
        self._total_forwarded = 0
        self._successful_forwards = 0
        self._failed_forwards = 0

    async def initialize(self) -> None:
        """Initialize the HTTP client."""
        if self._client is not None:
            return
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(
                connect=self.connect_timeout,
                read=self.request_timeout,
                write=self.request_timeout,
                pool=self.connect_timeout,
            ),
            limits=httpx.Limits(
                max_connections=100,
                max_keepalive_connections=20,
            ),
            follow_redirects=False,
        )
        self._owns_client = True
        logger.info("http_client_initialized")

    async def shutdown(self) -> None:
        """Shutdown the HTTP client."""
        if self._client and self._owns_client:
            await self._client.aclose()
        self._client = None
        logger.info("http_client_shutdown")

    async def forward(self, request: OutboundRequest) -> ProxyResponse:
        """
        Send a directed request to its destination.

        Args:
            request: Outbound request produced by the director

        Returns:
            ProxyResponse with the destination's status, headers and body

        Raises:
            httpx.HTTPError: If the destination cannot be reached
        """
        if not self._client:
            await self.initialize()

        self._total_forwarded += 1

        headers = [
            (name, value)
            for name, value in request.headers.multi_items()
            if name.lower() not in _DROPPED_REQUEST_HEADERS
        ]

        start_time = datetime.utcnow()
        try:
            response = await self._client.request(
                method=request.method,
                url=request.url,
                headers=headers,
                content=request.body,
            )
        except httpx.HTTPError as e:
            self._failed_forwards += 1
            logger.warning(
                "destination_request_failed",
                host=request.destination.host,
                error=str(e),
            )
            raise

        response_time = (datetime.utcnow() - start_time).total_seconds() * 1000
        self._successful_forwards += 1

        logger.info(
            "destination_forwarded",
            method=request.method,
            host=request.destination.host,
            status=response.status_code,
            response_time_ms=round(response_time, 2),
        )

        return ProxyResponse(
            status_code=response.status_code,
            headers=Headers(
                (name, value)
                for name, value in response.headers.multi_items()
                if name.lower() not in _DROPPED_RESPONSE_HEADERS
            ),
            body=response.content,
        )

    def get_stats(self) -> Dict[str, Any]:
        """Get forwarder statistics."""
        return {
            "total_forwarded": self._total_forwarded,
            "successful_forwards": self._successful_forwards,
            "failed_forwards": self._failed_forwards,
            "success_rate": (
                self._successful_forwards / self._total_forwarded
                if self._total_forwarded > 0
                else 0.0
            ),
        }
