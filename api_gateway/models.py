"""
Data models for the API gateway.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, Generic, List, Optional, TypeVar, Union

import httpx
from pydantic import BaseModel, ConfigDict, Field

from shared.errors import ApiErrorPayload, RequestFailedError
from shared.retry import RetryPolicy

T = TypeVar("T")


@dataclass(frozen=True)
class RequestDescriptor:
    """Normalized description of one outgoing request.

    Request middleware receives a descriptor and returns a (possibly new)
    descriptor; use :meth:`with_headers` or ``dataclasses.replace`` rather
    than mutating.
    """

    method: str
    url: str
    params: Optional[Dict[str, Any]] = None
    body: Any = None
    headers: Dict[str, str] = field(default_factory=dict)
    timeout: Optional[float] = None
    skip_cache: bool = False

    def with_headers(self, headers: Dict[str, str], override: bool = True) -> "RequestDescriptor":
        """Return a copy with ``headers`` merged in.

        With ``override=False`` headers already on the descriptor win.
        """
        if override:
            merged = {**self.headers, **headers}
        else:
            merged = {**headers, **self.headers}
        return replace(self, headers=merged)


RequestMiddleware = Callable[[RequestDescriptor], RequestDescriptor]
ResponseMiddleware = Callable[[httpx.Response], httpx.Response]
ErrorMiddleware = Callable[[RequestFailedError], Union[RequestFailedError, httpx.Response]]


class MiddlewareChains(BaseModel):
    """Ordered request/response/error transform functions."""

    request: List[RequestMiddleware] = Field(default_factory=list)
    response: List[ResponseMiddleware] = Field(default_factory=list)
    error: List[ErrorMiddleware] = Field(default_factory=list)

    model_config = ConfigDict(arbitrary_types_allowed=True)

    def __add__(self, other: "MiddlewareChains") -> "MiddlewareChains":
        return MiddlewareChains(
            request=[*self.request, *other.request],
            response=[*self.response, *other.response],
            error=[*self.error, *other.error],
        )


class GatewayConfig(BaseModel):
    """Gateway configuration, replaced as a whole on update."""

    base_url: str
    timeout: float = 30.0
    headers: Dict[str, str] = Field(default_factory=dict)
    middleware: MiddlewareChains = Field(default_factory=MiddlewareChains)
    retry_policy: Optional[RetryPolicy] = None
    debug: bool = False

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)


class CacheConfig(BaseModel):
    """Response cache configuration. ``ttl`` is in seconds."""

    enabled: bool = True
    ttl: float = 60.0
    max_size: Optional[int] = 100
    cache_non_get_requests: bool = False

    model_config = ConfigDict(frozen=True)


class ApiResponse(BaseModel, Generic[T]):
    """Normalized envelope returned by every gateway call."""

    data: Optional[T] = None
    status: int
    headers: Dict[str, Any] = Field(default_factory=dict)
    success: bool
    error: Optional[ApiErrorPayload] = None


class ConnectionStatus(BaseModel):
    """Connection health snapshot. ``time_since_last_success`` is in seconds."""

    is_online: bool
    time_since_last_success: float
    failed_request_count: int
    consecutive_failures: int = 0


class BackendHealth(BaseModel):
    status: str
    message: Optional[str] = None
    response_time: Optional[float] = None
    error: Optional[ApiErrorPayload] = None


class HealthCheckResponse(BaseModel):
    """Result of probing the backend health endpoint."""

    status: str
    timestamp: str
    backend: BackendHealth
    connection: ConnectionStatus
