"""
PyTest configuration and shared fixtures.
"""

import json
from datetime import timedelta
from typing import Any, Dict, List, Optional

import httpx
import pytest
from fastapi.testclient import TestClient

from lifeos.infrastructure.config.settings import (
    AppConfig,
    AuthConfig,
    GatewayConfig,
    MonitoringConfig,
)
from lifeos.infrastructure.monitoring.metrics import MetricsCollector
from lifeos.notifications.auth import TokenVerifier
from lifeos.notifications.connections import Connection
from lifeos.notifications.dispatcher import NotificationDispatcher
from lifeos.notifications.registry import ConnectionRegistry

TEST_SECRET = "test-secret"

STUB_SERVICE_URLS = {
    "auth": "http://auth.test",
    "health": "http://health.test",
    "finance": "http://finance.test",
    "learning": "http://learning.test",
    "notification": "http://notification.test",
}


class RecordingConnection(Connection):
    """Connection that keeps every frame it was asked to send."""

    def __init__(self, connection_id: Optional[str] = None):
        super().__init__(connection_id)
        self.sent: List[Dict[str, Any]] = []

    async def send(self, event: str, data: Dict[str, Any]) -> None:
        self.sent.append({"type": event, "data": data})


class FailingConnection(Connection):
    """Connection whose transport is already gone."""

    async def send(self, event: str, data: Dict[str, Any]) -> None:
        raise ConnectionResetError("peer went away")


@pytest.fixture
def auth_config():
    return AuthConfig(jwt_secret=TEST_SECRET)


@pytest.fixture
def app_config(auth_config):
    """Application config with test secrets and no metrics server."""
    return AppConfig(
        environment="testing",
        auth=auth_config,
        gateway=GatewayConfig(services=dict(STUB_SERVICE_URLS)),
        monitoring=MonitoringConfig(metrics_enabled=False),
    )


@pytest.fixture
def metrics_collector():
    """Fresh collector so counts never leak between tests."""
    return MetricsCollector()


@pytest.fixture
def token_verifier(auth_config):
    return TokenVerifier(auth_config)


@pytest.fixture
def make_token(token_verifier):
    def _make(subject: str = "user-1", minutes: int = 5, **claims) -> str:
        return token_verifier.create_access_token(
            subject, expires_delta=timedelta(minutes=minutes), extra_claims=claims or None
        )

    return _make


@pytest.fixture
def auth_headers(make_token):
    return {"Authorization": f"Bearer {make_token('producer-service')}"}


@pytest.fixture
def registry():
    return ConnectionRegistry()


@pytest.fixture
def dispatcher(registry, metrics_collector):
    return NotificationDispatcher(registry, metrics=metrics_collector)


@pytest.fixture
def attach_connection(registry):
    """Attach a recording connection, optionally registering it for a user."""

    def _attach(user_id: Optional[str] = None, connection_id: Optional[str] = None) -> RecordingConnection:
        connection = RecordingConnection(connection_id)
        registry.attach(connection)
        if user_id:
            registry.register(user_id, connection.connection_id)
        return connection

    return _attach


@pytest.fixture
def notification_app(app_config, metrics_collector):
    from lifeos.notifications.app import create_app

    return create_app(app_config, metrics=metrics_collector)


@pytest.fixture
def notification_client(notification_app):
    with TestClient(notification_app) as client:
        yield client


@pytest.fixture
def backend_calls():
    """Requests seen by the stub backends, in order."""
    return []


@pytest.fixture
def stub_backends(backend_calls):
    """MockTransport standing in for every backend service.

    ``/missing`` paths answer 404 ``{"error": "not found"}``, ``/down`` paths
    fail at the transport level, everything else echoes the request.
    """

    def handler(request: httpx.Request) -> httpx.Response:
        backend_calls.append(request)
        if request.url.path.endswith("/missing"):
            return httpx.Response(404, json={"error": "not found"})
        if request.url.path.endswith("/down"):
            raise httpx.ConnectError("connection refused", request=request)

        echo = {
            "host": request.url.host,
            "method": request.method,
            "path": request.url.path,
            "query": request.url.query.decode(),
            "body": request.content.decode(),
        }
        return httpx.Response(
            200,
            content=json.dumps(echo).encode(),
            headers=[
                ("content-type", "application/json"),
                ("x-backend", request.url.host),
                ("set-cookie", "a=1"),
                ("set-cookie", "b=2"),
                ("server", "stub-backend"),
                ("date", "Mon, 01 Jan 2024 00:00:00 GMT"),
            ],
        )

    return httpx.MockTransport(handler)


@pytest.fixture
def gateway_app(app_config, stub_backends, metrics_collector):
    from lifeos.gateway.app import create_app

    client = httpx.AsyncClient(transport=stub_backends)
    return create_app(app_config, client=client, metrics=metrics_collector)


@pytest.fixture
def gateway_client(gateway_app):
    with TestClient(gateway_app) as client:
        yield client
