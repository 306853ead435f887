"""
Service Router

Classifies gateway requests, resolves the backend base URL and relays the
call. Upstream responses are passed through untouched whatever their status;
only a failure without any upstream response is answered by the gateway
itself. There is no retry, circuit breaking or response caching here.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Iterable, List, Mapping, Optional, Tuple

import httpx

from lifeos.infrastructure.config.settings import GatewayConfig
from lifeos.infrastructure.monitoring.metrics import MetricsCollector, metrics as default_metrics
from lifeos.utils.exceptions import ConfigurationError, GatewayError

from .routing import RouteTable

logger = logging.getLogger(__name__)

GATEWAY_ERROR_STATUS = 500
GATEWAY_ERROR_BODY = b'{"message":"Gateway error"}'

# Connection-level headers never forwarded in either direction
HOP_BY_HOP_HEADERS = frozenset(
    {
        "connection",
        "keep-alive",
        "proxy-authenticate",
        "proxy-authorization",
        "te",
        "trailer",
        "transfer-encoding",
        "upgrade",
    }
)
# Recomputed by the outbound transport
REQUEST_SKIP_HEADERS = HOP_BY_HOP_HEADERS | {"host", "content-length"}
# The relayed body is already decoded and re-measured; the serving
# process sets its own date and server
RESPONSE_SKIP_HEADERS = HOP_BY_HOP_HEADERS | {"content-length", "content-encoding", "date", "server"}


Header = Tuple[str, str]


def filter_headers(headers: Iterable[Header], skip: frozenset) -> List[Header]:
    """Drop the headers named in ``skip``; repeated headers are kept."""
    return [(k, v) for k, v in headers if k.lower() not in skip]


@dataclass
class ProxyResponse:
    """What the gateway sends back to its caller."""

    status_code: int
    content: bytes
    headers: List[Header] = field(default_factory=list)
    backend: Optional[str] = None

    @property
    def media_type(self) -> Optional[str]:
        for key, value in self.headers:
            if key.lower() == "content-type":
                return value
        return None

    @classmethod
    def gateway_error(cls, backend: Optional[str] = None) -> "ProxyResponse":
        return cls(
            status_code=GATEWAY_ERROR_STATUS,
            content=GATEWAY_ERROR_BODY,
            headers=[("content-type", "application/json")],
            backend=backend,
        )


class ServiceRouter:
    """Routes requests to the appropriate LifeOS backend"""

    def __init__(
        self,
        route_table: RouteTable,
        service_urls: Mapping[str, str],
        client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.route_table = route_table
        self.service_urls = dict(service_urls)
        self.metrics = metrics or default_metrics

        if client is None:
            client_kwargs = {}
            if timeout is not None:
                client_kwargs["timeout"] = httpx.Timeout(timeout)
            client = httpx.AsyncClient(**client_kwargs)
        self.client = client

    @classmethod
    def from_config(
        cls,
        config: GatewayConfig,
        client: Optional[httpx.AsyncClient] = None,
        metrics: Optional[MetricsCollector] = None,
    ) -> "ServiceRouter":
        return cls(
            RouteTable.from_pairs(config.routes, config.default_backend),
            config.services,
            client=client,
            timeout=config.timeout,
            metrics=metrics,
        )

    async def cleanup(self):
        """Cleanup resources"""
        await self.client.aclose()

    def classify(self, path: str) -> str:
        return self.route_table.classify(path)

    def resolve(self, backend: str) -> str:
        """Base URL of ``backend``."""
        try:
            return self.service_urls[backend].rstrip("/")
        except KeyError:
            raise ConfigurationError(
                f"No service URL configured for backend: {backend}",
                details={"backend": backend},
            ) from None

    def target_url(self, path: str, query: str = "") -> str:
        """Full upstream URL for an inbound path and raw query string."""
        url = f"{self.resolve(self.classify(path))}{path}"
        return f"{url}?{query}" if query else url

    async def proxy(
        self,
        method: str,
        url: str,
        body: bytes = b"",
        headers: Optional[Iterable[Header]] = None,
        backend: Optional[str] = None,
    ) -> ProxyResponse:
        """Issue the upstream call and relay whatever comes back.

        Raises:
            GatewayError: the call failed without any upstream response
        """
        backend = backend or "unknown"
        start_time = time.perf_counter()

        try:
            response = await self.client.request(
                method,
                url,
                content=body or None,
                headers=filter_headers(headers or (), REQUEST_SKIP_HEADERS),
            )
        except httpx.HTTPError as e:
            logger.warning(f"Upstream {backend} unreachable for {method} {url}: {e!r}")
            self.metrics.record_transport_error(backend)
            self.metrics.record_proxy(backend, method, GATEWAY_ERROR_STATUS, time.perf_counter() - start_time)
            raise GatewayError(backend=backend, details={"url": url}) from e

        self.metrics.record_proxy(backend, method, response.status_code, time.perf_counter() - start_time)
        return ProxyResponse(
            status_code=response.status_code,
            content=response.content,
            headers=filter_headers(response.headers.multi_items(), RESPONSE_SKIP_HEADERS),
            backend=backend,
        )

    async def forward(
        self,
        method: str,
        path: str,
        query: str = "",
        body: bytes = b"",
        headers: Optional[Iterable[Header]] = None,
    ) -> ProxyResponse:
        """Classify, resolve and proxy one inbound request."""
        backend = self.classify(path)
        url = self.target_url(path, query)
        try:
            return await self.proxy(method, url, body=body, headers=headers, backend=backend)
        except GatewayError:
            return ProxyResponse.gateway_error(backend)
