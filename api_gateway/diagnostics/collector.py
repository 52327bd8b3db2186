"""
Per-endpoint diagnostics collected by the gateway in debug mode.
"""

import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel, Field

from ..models import RequestDescriptor


UNKNOWN_ENDPOINT = "unknown-endpoint"


class EndpointError(BaseModel):
    message: str
    status: Optional[int] = None
    time: float


class EndpointDiagnostics(BaseModel):
    endpoint: str
    request_count: int
    error_count: int
    error_rate: float
    last_error: Optional[EndpointError] = None
    last_request_time: Optional[float] = None


class DiagnosticsSummary(BaseModel):
    endpoints: List[EndpointDiagnostics] = Field(default_factory=list)
    total_requests: int = 0
    total_errors: int = 0


@dataclass
class _EndpointStats:
    count: int = 0
    errors: int = 0
    last_error: Optional[EndpointError] = None
    last_request_time: Optional[float] = None


def normalize_endpoint(url: Any) -> str:
    """Strip the query string from ``url``; unusable values map to ``unknown-endpoint``."""
    if not url or not isinstance(url, str):
        return UNKNOWN_ENDPOINT
    return url.split("?", 1)[0]


class DiagnosticsCollector:
    """Request and error counters keyed by endpoint path.

    Entries live until :meth:`reset`; there is no eviction.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._endpoints: Dict[str, _EndpointStats] = {}

    def _stats_for(self, url: Any) -> _EndpointStats:
        endpoint = normalize_endpoint(url)
        stats = self._endpoints.get(endpoint)
        if stats is None:
            stats = self._endpoints[endpoint] = _EndpointStats()
        return stats

    def record_request(self, url: Any, request: Optional[RequestDescriptor] = None) -> None:
        stats = self._stats_for(url)
        stats.count += 1
        stats.last_request_time = self._clock()

    def record_error(self, url: Any, error: BaseException) -> None:
        stats = self._stats_for(url)
        stats.errors += 1
        stats.last_error = EndpointError(
            message=str(error) or error.__class__.__name__,
            status=getattr(error, "status_code", None),
            time=self._clock(),
        )

    def get_diagnostics(self) -> DiagnosticsSummary:
        endpoints = [
            EndpointDiagnostics(
                endpoint=endpoint,
                request_count=stats.count,
                error_count=stats.errors,
                error_rate=(stats.errors / stats.count) * 100 if stats.count > 0 else 0.0,
                last_error=stats.last_error,
                last_request_time=stats.last_request_time,
            )
            for endpoint, stats in self._endpoints.items()
        ]
        return DiagnosticsSummary(
            endpoints=endpoints,
            total_requests=sum(stats.count for stats in self._endpoints.values()),
            total_errors=sum(stats.errors for stats in self._endpoints.values()),
        )

    def reset(self) -> None:
        self._endpoints.clear()
