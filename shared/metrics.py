"""
Prometheus metrics for the API gateway.
"""

from typing import Any, Dict, Optional

from prometheus_client import CollectorRegistry, Counter, Histogram


class GatewayMetrics:
    """Metrics collector owned by a single gateway instance.

    Metrics are only exported when a ``registry`` is supplied; without one
    they are still collected and can be read back for diagnostics.
    """

    def __init__(self, client_name: str = "api_gateway", registry: Optional[CollectorRegistry] = None):
        self.client_name = client_name
        self.registry = registry
        self._metrics: Dict[str, Any] = {}
        self._setup_metrics()

    def _setup_metrics(self):
        """Set up gateway metrics."""

        self._metrics["gateway_requests_total"] = Counter(
            "gateway_requests_total",
            "Total requests dispatched through the gateway",
            ["client", "method", "endpoint", "status_code"],
            registry=self.registry
        )

        self._metrics["gateway_request_duration_seconds"] = Histogram(
            "gateway_request_duration_seconds",
            "Gateway request duration in seconds",
            ["client", "method", "endpoint"],
            registry=self.registry
        )

        self._metrics["gateway_retries_total"] = Counter(
            "gateway_retries_total",
            "Total retry re-dispatches",
            ["client", "endpoint"],
            registry=self.registry
        )

        self._metrics["gateway_cache_events_total"] = Counter(
            "gateway_cache_events_total",
            "Response cache lookups by result",
            ["client", "result"],
            registry=self.registry
        )

    def record_request(self, method: str, endpoint: str, status_code: Optional[int], duration: float):
        """Record a completed dispatch. ``status_code`` is ``None`` for network errors."""
        status = str(status_code) if status_code is not None else "network_error"
        self._metrics["gateway_requests_total"].labels(
            client=self.client_name,
            method=method.upper(),
            endpoint=endpoint,
            status_code=status
        ).inc()
        self._metrics["gateway_request_duration_seconds"].labels(
            client=self.client_name,
            method=method.upper(),
            endpoint=endpoint
        ).observe(duration)

    def record_retry(self, endpoint: str):
        self._metrics["gateway_retries_total"].labels(
            client=self.client_name,
            endpoint=endpoint
        ).inc()

    def record_cache_event(self, result: str):
        self._metrics["gateway_cache_events_total"].labels(
            client=self.client_name,
            result=result
        ).inc()

    def get_metric(self, name: str) -> Any:
        """Return the underlying prometheus metric object."""
        return self._metrics[name]
