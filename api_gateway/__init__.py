"""
API gateway client for the Market Insights dashboard backend.

The gateway fronts every backend call, providing:
- A normalized response envelope that never raises on HTTP/network failure
- Response caching for GET requests (TTL + bounded size)
- Retries with exponential backoff and jitter
- Connection health monitoring and per-endpoint diagnostics

Structure:
- gateway: ApiGateway facade and factory.
- models: Configuration, request descriptor and envelope models.
- caching: Response cache.
- health: Connection monitor.
- diagnostics: Per-endpoint diagnostics collector.
- middleware: Reusable request/response/error middleware chains.
"""

from .gateway import ApiGateway, create_api_gateway
from .models import (
    ApiResponse,
    CacheConfig,
    ConnectionStatus,
    GatewayConfig,
    HealthCheckResponse,
    MiddlewareChains,
    RequestDescriptor,
)

__all__ = [
    "ApiGateway",
    "create_api_gateway",
    "ApiResponse",
    "CacheConfig",
    "ConnectionStatus",
    "GatewayConfig",
    "HealthCheckResponse",
    "MiddlewareChains",
    "RequestDescriptor",
]
