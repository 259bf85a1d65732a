"""
Prometheus metrics collection.

In-memory counters on a per-application registry, exposed at /metrics.
"""

import structlog
from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, Info

logger = structlog.get_logger(__name__)


class MetricsCollector:
    """
    Centralized metrics collection for UserAPI.

    Each collector owns its registry, so several applications (as in tests)
    can live in one process without duplicate metric names.
    """

    def __init__(self, version: str = "0.1.0") -> None:
        self.registry = CollectorRegistry()

        self.service_info = Info(
            "userapi_service",
            "UserAPI service information",
            registry=self.registry,
        )
        self.service_info.info({
            "version": version,
            "service": "userapi",
        })

        # Request metrics
        self.requests_total = Counter(
            "http_requests_total",
            "Total HTTP requests",
            ["method", "endpoint", "status_code"],
            registry=self.registry,
        )

        self.request_duration = Histogram(
            "http_request_duration_seconds",
            "HTTP request duration in seconds",
            ["method", "endpoint"],
            buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1.0],
            registry=self.registry,
        )

        # Store metrics
        self.users_stored = Gauge(
            "users_stored",
            "Current number of user records in memory",
            registry=self.registry,
        )

        logger.info("Metrics collector initialized")

    def record_request(self, method: str, endpoint: str, status_code: int, duration: float) -> None:
        self.requests_total.labels(
            method=method,
            endpoint=endpoint,
            status_code=str(status_code),
        ).inc()
        self.request_duration.labels(method=method, endpoint=endpoint).observe(duration)

    def set_users_stored(self, count: int) -> None:
        self.users_stored.set(count)
