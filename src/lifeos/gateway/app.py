"""
API Gateway Service

Single public entry point for LifeOS. Every request is classified by path
prefix and reverse-proxied to the owning backend; the gateway adds no
endpoints of its own.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI, Request, Response

from lifeos import __version__
from lifeos.infrastructure.config.settings import AppConfig, get_config
from lifeos.infrastructure.monitoring.metrics import MetricsCollector

from .proxy import ServiceRouter

logger = logging.getLogger(__name__)

PROXY_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "HEAD"]


def create_app(
    config: Optional[AppConfig] = None,
    client: Optional[httpx.AsyncClient] = None,
    metrics: Optional[MetricsCollector] = None,
) -> FastAPI:
    """Build the gateway around one ``ServiceRouter``."""
    config = config or get_config()
    service_router = ServiceRouter.from_config(config.gateway, client=client, metrics=metrics)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager"""
        logger.info(
            f"Starting API Gateway with backends: {', '.join(service_router.route_table.backends())}"
        )
        yield
        logger.info("Shutting down API Gateway...")
        await service_router.cleanup()

    # The catch-all owns every path, so no docs routes either
    app = FastAPI(
        title="LifeOS API Gateway",
        version=__version__,
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.config = config
    app.state.service_router = service_router

    @app.api_route("/{full_path:path}", methods=PROXY_METHODS, include_in_schema=False)
    async def proxy_request(request: Request, full_path: str):
        """Relay the request to the backend its path belongs to."""
        # Percent-escapes must reach the backend as sent
        raw_path = request.scope.get("raw_path")
        path = raw_path.decode("latin-1") if raw_path else request.url.path

        result = await service_router.forward(
            request.method,
            path,
            query=request.url.query,
            body=await request.body(),
            headers=request.headers.items(),
        )

        response = Response(content=result.content, status_code=result.status_code)
        response.raw_headers.extend(
            (key.lower().encode("latin-1"), value.encode("latin-1")) for key, value in result.headers
        )
        return response

    return app
