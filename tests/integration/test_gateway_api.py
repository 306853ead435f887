"""
End-to-end tests for the API gateway against stub backends.
"""

import httpx
import pytest
from fastapi.testclient import TestClient

from lifeos.gateway.app import create_app


class TestGatewayRouting:
    """Test cases for classification through the HTTP surface."""

    @pytest.mark.parametrize(
        "path,host",
        [
            ("/health/vitals", "health.test"),
            ("/finance", "finance.test"),
            ("/learning/courses", "learning.test"),
            ("/notifications/unread-count", "notification.test"),
            ("/notifications-admin", "notification.test"),
            ("/unknown/path", "auth.test"),
            ("/auth/login", "auth.test"),
        ],
    )
    def test_path_reaches_backend(self, gateway_client, path, host):
        response = gateway_client.get(path)

        assert response.status_code == 200
        assert response.json()["host"] == host
        assert response.json()["path"] == path

    @pytest.mark.parametrize("method", ["GET", "POST", "PUT", "PATCH", "DELETE"])
    def test_methods(self, gateway_client, method):
        response = gateway_client.request(method, "/finance/budgets/1")
        assert response.json()["method"] == method

    def test_root_path(self, gateway_client):
        assert gateway_client.get("/").json()["host"] == "auth.test"

    def test_docs_paths_are_proxied(self, gateway_client):
        """The gateway has no routes of its own, not even API docs."""
        assert gateway_client.get("/docs").json()["host"] == "auth.test"
        assert gateway_client.get("/openapi.json").json()["host"] == "auth.test"


class TestGatewayRelay:
    """Test cases for what is forwarded and what comes back."""

    def test_query_and_body_are_forwarded(self, gateway_client, backend_calls):
        response = gateway_client.post(
            "/learning/progress?course=42&week=3",
            content=b'{"minutes": 30}',
            headers={"Content-Type": "application/json", "Authorization": "Bearer abc"},
        )

        echo = response.json()
        assert echo["query"] == "course=42&week=3"
        assert echo["body"] == '{"minutes": 30}'
        assert backend_calls[0].headers["authorization"] == "Bearer abc"
        assert backend_calls[0].headers["content-type"] == "application/json"

    def test_encoded_path_is_forwarded_verbatim(self, gateway_client, backend_calls):
        """Percent-escapes in the path are not decoded on the way through."""
        response = gateway_client.get("/finance/notes/a%3Fb%2Fc")

        assert response.status_code == 200
        assert backend_calls[0].url.host == "finance.test"
        assert backend_calls[0].url.raw_path == b"/finance/notes/a%3Fb%2Fc"
        assert backend_calls[0].url.query == b""

    def test_encoded_path_keeps_real_query(self, gateway_client, backend_calls):
        gateway_client.get("/learning/a%20b?tag=x%26y")

        assert backend_calls[0].url.raw_path == b"/learning/a%20b?tag=x%26y"

    def test_upstream_404_is_relayed(self, gateway_client):
        response = gateway_client.get("/finance/missing")

        assert response.status_code == 404
        assert response.json() == {"error": "not found"}

    def test_transport_failure(self, gateway_client):
        response = gateway_client.get("/health/down")

        assert response.status_code == 500
        assert response.json() == {"message": "Gateway error"}
        assert response.headers["content-type"] == "application/json"

    def test_response_headers(self, gateway_client):
        response = gateway_client.get("/health/vitals")

        assert response.headers["x-backend"] == "health.test"
        assert response.headers.get_list("set-cookie") == ["a=1", "b=2"]
        assert response.headers.get("server") != "stub-backend"
        assert response.headers["content-length"] == str(len(response.content))

    def test_metrics_recorded(self, gateway_client, metrics_collector):
        gateway_client.get("/finance/missing")
        gateway_client.get("/health/down")

        requests = metrics_collector.gateway_requests
        assert requests.labels(backend="finance", method="GET", status="404")._value.get() == 1
        assert requests.labels(backend="health", method="GET", status="500")._value.get() == 1


class TestGatewayLifecycle:
    """Test cases for startup and shutdown."""

    def test_shutdown_closes_client(self, app_config, stub_backends, metrics_collector):
        client = httpx.AsyncClient(transport=stub_backends)
        app = create_app(app_config, client=client, metrics=metrics_collector)

        with TestClient(app) as test_client:
            test_client.get("/health")

        assert client.is_closed
        assert app.state.service_router.client is client
