"""
Metrics collection and monitoring utilities.

Provides Prometheus metrics for the gateway proxy and the notification
fan-out service.
"""

from typing import Any, Dict

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, generate_latest, start_http_server


class MetricsCollector:
    """Collects and exposes metrics for monitoring."""

    def __init__(self):
        self.registry = CollectorRegistry()

        # Gateway metrics
        self.gateway_requests = Counter(
            "lifeos_gateway_requests_total",
            "Total requests proxied by the gateway",
            ["backend", "method", "status"],
            registry=self.registry,
        )

        self.gateway_request_duration = Histogram(
            "lifeos_gateway_request_duration_seconds",
            "Time spent waiting on the upstream service",
            ["backend"],
            registry=self.registry,
        )

        self.gateway_transport_errors = Counter(
            "lifeos_gateway_transport_errors_total",
            "Upstream calls that failed without a response",
            ["backend"],
            registry=self.registry,
        )

        # Notification metrics
        self.active_connections = Gauge(
            "lifeos_notifications_active_connections",
            "Number of open notification connections",
            registry=self.registry,
        )

        self.handshake_rejections = Counter(
            "lifeos_notifications_handshake_rejections_total",
            "Connections closed because the credential was rejected",
            registry=self.registry,
        )

        self.notifications_pushed = Counter(
            "lifeos_notifications_pushed_total",
            "Notifications pushed to a live connection",
            ["scope"],
            registry=self.registry,
        )

        self.notifications_dropped = Counter(
            "lifeos_notifications_dropped_total",
            "Notifications that were not pushed",
            ["reason"],
            registry=self.registry,
        )

    def record_proxy(self, backend: str, method: str, status: int, duration: float) -> None:
        """Record one proxied request."""
        self.gateway_requests.labels(backend=backend, method=method, status=str(status)).inc()
        self.gateway_request_duration.labels(backend=backend).observe(duration)

    def record_transport_error(self, backend: str) -> None:
        self.gateway_transport_errors.labels(backend=backend).inc()

    def record_push(self, scope: str) -> None:
        self.notifications_pushed.labels(scope=scope).inc()

    def record_drop(self, reason: str) -> None:
        self.notifications_dropped.labels(reason=reason).inc()

    def get_metrics(self) -> bytes:
        """Render all metrics in the Prometheus text format."""
        return generate_latest(self.registry)

    def get_summary(self) -> Dict[str, Any]:
        """Small JSON-friendly summary used by the stats endpoint."""

        def _total(metric) -> float:
            return sum(
                sample.value
                for family in metric.collect()
                for sample in family.samples
                if sample.name.endswith("_total")
            )

        return {
            "active_connections": self.active_connections._value.get(),
            "handshake_rejections": _total(self.handshake_rejections),
            "notifications_pushed": _total(self.notifications_pushed),
            "notifications_dropped": _total(self.notifications_dropped),
        }

    def serve(self, port: int) -> None:
        """Expose the registry on its own HTTP port."""
        start_http_server(port, registry=self.registry)


# Global metrics instance
metrics = MetricsCollector()
