"""
FastAPI application for the LifeOS notification service.

Live pushes over WebSocket plus the REST notification resource that
produces them.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from lifeos import __version__
from lifeos.infrastructure.config.settings import AppConfig, get_config
from lifeos.infrastructure.monitoring.metrics import MetricsCollector, metrics as default_metrics
from lifeos.utils.exceptions import AuthenticationError, LifeOSError, NotificationNotFoundError

from .auth import HandshakeAuthenticator, TokenVerifier
from .dispatcher import NotificationDispatcher
from .handlers import WebSocketHandler
from .registry import ConnectionRegistry
from .repository import NotificationRepository, create_repository
from .routes import notification_socket, router
from .service import NotificationService

logger = logging.getLogger(__name__)


def _status_for(error: LifeOSError) -> int:
    if isinstance(error, NotificationNotFoundError):
        return 404
    if isinstance(error, AuthenticationError):
        return 401
    return 400


def create_app(
    config: Optional[AppConfig] = None,
    repository: Optional[NotificationRepository] = None,
    metrics: Optional[MetricsCollector] = None,
) -> FastAPI:
    """Build the notification service with its own registry and dispatcher."""
    config = config or get_config()
    metrics = metrics or default_metrics

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting notification service...")
        yield
        logger.info(
            f"Notification service stopped with {len(app.state.registry)} registered users"
        )

    app = FastAPI(
        title="LifeOS Notification Service",
        description="Real-time notification fan-out and notification records",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.notifications.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    registry = ConnectionRegistry()
    dispatcher = NotificationDispatcher(registry, metrics=metrics)
    verifier = TokenVerifier(config.auth)

    app.state.config = config
    app.state.metrics = metrics
    app.state.registry = registry
    app.state.dispatcher = dispatcher
    app.state.token_verifier = verifier
    app.state.authenticator = HandshakeAuthenticator(verifier)
    app.state.ws_handler = WebSocketHandler(registry)
    app.state.notification_service = NotificationService(
        repository or create_repository(), dispatcher
    )

    @app.exception_handler(LifeOSError)
    async def lifeos_error_handler(request: Request, exc: LifeOSError):
        status_code = _status_for(exc)
        if status_code == 400:
            logger.warning(f"{request.method} {request.url.path} failed: {exc}")
        headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
        return JSONResponse(status_code=status_code, content=exc.to_dict(), headers=headers)

    app.include_router(router)
    app.add_api_websocket_route(config.notifications.websocket_path, notification_socket)

    return app
