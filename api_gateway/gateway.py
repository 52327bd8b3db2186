"""
Unified request gateway for the market insights backend.
"""

import asyncio
import time
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional, Union

import httpx
from prometheus_client import CollectorRegistry

from shared.config import GatewaySettings, get_settings
from shared.errors import (
    ApiErrorPayload,
    RequestFailedError,
    RetriesExhaustedError,
    UNKNOWN_ERROR_CODE,
)
from shared.logging import get_logger
from shared.metrics import GatewayMetrics
from shared.retry import RetryState, can_retry, compute_delay, should_retry
from .caching import ResponseCache
from .diagnostics import DiagnosticsCollector, DiagnosticsSummary
from .diagnostics.collector import normalize_endpoint
from .health import ConnectionMonitor
from .models import (
    ApiResponse,
    BackendHealth,
    CacheConfig,
    ConnectionStatus,
    GatewayConfig,
    HealthCheckResponse,
    RequestDescriptor,
)


DEFAULT_HEADERS = {"Content-Type": "application/json"}
DEFAULT_HEALTH_PATH = "/health"


class ApiGateway:
    """Single entry point for backend requests.

    Every public request method resolves to an :class:`ApiResponse`; HTTP and
    network failures, and request bodies that cannot be encoded, never escape
    as exceptions. Exceptions raised by configured middleware do propagate.
    """

    def __init__(
        self,
        config: GatewayConfig,
        cache_config: Optional[CacheConfig] = None,
        *,
        metrics: Optional[GatewayMetrics] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock=time.monotonic,
    ):
        self._config = config
        self.logger = get_logger("gateway.api_gateway")
        self.cache = ResponseCache(cache_config, clock=clock)
        self.connection_monitor = ConnectionMonitor(clock=clock)
        self.diagnostics = DiagnosticsCollector()
        self.metrics = metrics or GatewayMetrics()

        self._client = httpx.AsyncClient(
            base_url=config.base_url,
            timeout=config.timeout,
            headers=self._build_headers(config.headers),
            transport=transport,
            follow_redirects=True,
        )

    @property
    def config(self) -> GatewayConfig:
        return self._config

    @staticmethod
    def _build_headers(headers: Optional[Mapping[str, str]]) -> Dict[str, str]:
        return {**DEFAULT_HEADERS, **(headers or {})}

    async def __aenter__(self) -> "ApiGateway":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    # Request pipeline

    def _prepare_request(self, request: RequestDescriptor):
        """Run the request stage; returns the outgoing descriptor and any cached response."""
        cached = None
        if request.method.upper() == "GET" and self.cache.is_cacheable(request):
            cached = self.cache.get(request)
            self.metrics.record_cache_event("hit" if cached is not None else "miss")

        if self._config.debug:
            self.diagnostics.record_request(request.url, request)
            self.logger.debug(
                "Dispatching request",
                method=request.method.upper(),
                endpoint=request.url,
                from_cache=cached is not None
            )

        outgoing = request
        for middleware in self._config.middleware.request:
            outgoing = middleware(outgoing)

        return outgoing, cached

    def _build_request(self, request: RequestDescriptor) -> httpx.Request:
        """Encode ``request`` for the client; an unencodable body fails without dispatching."""
        body_kwargs: Dict[str, Any] = {}
        if isinstance(request.body, (bytes, str)):
            body_kwargs["content"] = request.body
        elif request.body is not None:
            body_kwargs["json"] = request.body

        try:
            return self._client.build_request(
                request.method.upper(),
                request.url,
                params=request.params,
                headers=request.headers or None,
                timeout=request.timeout if request.timeout is not None else httpx.USE_CLIENT_DEFAULT,
                **body_kwargs
            )
        except (TypeError, ValueError) as exc:
            raise RequestFailedError.from_exception(exc, request) from exc

    async def _send(self, request: RequestDescriptor, http_request: httpx.Request) -> httpx.Response:
        started = time.perf_counter()
        status_code = None
        try:
            response = await self._client.send(http_request)
            status_code = response.status_code
            response.raise_for_status()
            return response
        finally:
            self.metrics.record_request(
                request.method,
                normalize_endpoint(request.url),
                status_code,
                time.perf_counter() - started
            )

    async def _dispatch(self, request: RequestDescriptor, retry_state: RetryState) -> httpx.Response:
        outgoing, cached = self._prepare_request(request)

        if cached is not None:
            return self._handle_success(request, cached, from_cache=True)

        try:
            response = await self._send(outgoing, self._build_request(outgoing))
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            error = RequestFailedError.from_exception(exc, outgoing, retry_state)
            return await self._handle_failure(request, error)

        return self._handle_success(request, response, from_cache=False)

    def _handle_success(self, request: RequestDescriptor, response: httpx.Response, from_cache: bool) -> httpx.Response:
        self.connection_monitor.record_success()

        # re-storing a hit would restart its TTL
        if not from_cache:
            self.cache.set(request, response)

        for middleware in self._config.middleware.response:
            response = middleware(response)
        return response

    async def _handle_failure(self, request: RequestDescriptor, error: RequestFailedError) -> httpx.Response:
        if self._config.debug:
            self.diagnostics.record_error(error.request.url, error)

        self.connection_monitor.record_failure()

        policy = self._config.retry_policy
        retry_state = error.retry_state or RetryState()

        if policy is not None and can_retry(retry_state, policy) and should_retry(error.status_code, policy):
            next_state = retry_state.advance()
            delay = compute_delay(next_state.count - 1, policy)

            if self._config.debug:
                self.logger.info(
                    "Retrying request",
                    endpoint=request.url,
                    method=request.method.upper(),
                    attempt=next_state.count,
                    max_retries=policy.max_retries,
                    delay=delay
                )
            self.metrics.record_retry(normalize_endpoint(request.url))

            await asyncio.sleep(delay)
            return await self._dispatch(request, next_state)

        if retry_state.count > 0:
            error = RetriesExhaustedError.from_failure(error)

        for middleware in self._config.middleware.error:
            outcome = middleware(error)
            if isinstance(outcome, httpx.Response):
                return outcome
            if isinstance(outcome, RequestFailedError):
                error = outcome

        raise error from error.cause

    # Public request surface

    async def _call(
        self,
        method: str,
        endpoint: str,
        body: Any = None,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        skip_cache: bool = False,
    ) -> ApiResponse:
        request = RequestDescriptor(
            method=method,
            url=endpoint,
            params=params,
            body=body,
            headers=dict(headers or {}),
            skip_cache=skip_cache,
        )

        try:
            response = await self._dispatch(request, RetryState())
        except RequestFailedError as error:
            return self._handle_error(error)

        return ApiResponse(
            data=_parse_body(response),
            status=response.status_code,
            headers=dict(response.headers),
            success=True,
        )

    def _handle_error(self, error: RequestFailedError) -> ApiResponse:
        response = error.response
        body = _parse_body(response) if response is not None else None
        structured = body if isinstance(body, dict) else {}

        payload = ApiErrorPayload(
            message=str(structured.get("message") or error.message or "Unknown error occurred"),
            code=str(structured.get("code") or UNKNOWN_ERROR_CODE),
            details=body if body not in (None, "") else {},
        )
        result = ApiResponse(
            data=None,
            status=response.status_code if response is not None else 500,
            headers=dict(response.headers) if response is not None else {},
            success=False,
            error=payload,
        )

        if self._config.debug:
            self.logger.error(
                "API gateway request failed",
                endpoint=error.request.url,
                method=error.request.method.upper(),
                status=result.status,
                message=payload.message
            )

        return result

    async def get(self, endpoint: str, params: Optional[Dict[str, Any]] = None, headers: Optional[Dict[str, str]] = None) -> ApiResponse:
        """Make a GET request, served from the response cache when possible."""
        return await self._call("GET", endpoint, params=params, headers=headers)

    async def post(self, endpoint: str, body: Any = None, params: Optional[Dict[str, Any]] = None, headers: Optional[Dict[str, str]] = None) -> ApiResponse:
        return await self._call("POST", endpoint, body=body, params=params, headers=headers)

    async def put(self, endpoint: str, body: Any = None, params: Optional[Dict[str, Any]] = None, headers: Optional[Dict[str, str]] = None) -> ApiResponse:
        return await self._call("PUT", endpoint, body=body, params=params, headers=headers)

    async def patch(self, endpoint: str, body: Any = None, params: Optional[Dict[str, Any]] = None, headers: Optional[Dict[str, str]] = None) -> ApiResponse:
        return await self._call("PATCH", endpoint, body=body, params=params, headers=headers)

    async def delete(self, endpoint: str, params: Optional[Dict[str, Any]] = None, headers: Optional[Dict[str, str]] = None) -> ApiResponse:
        return await self._call("DELETE", endpoint, params=params, headers=headers)

    # Configuration and status

    def update_config(self, config: Mapping[str, Any], cache_config: Optional[Mapping[str, Any]] = None) -> None:
        """Merge ``config`` into the current configuration and apply it to the live client."""
        merged = {name: getattr(self._config, name) for name in GatewayConfig.model_fields}
        merged.update(config)
        previous_base_url = self._config.base_url
        self._config = GatewayConfig(**merged)

        # cache keys are relative to the base URL
        if self._config.base_url != previous_base_url:
            self.cache.clear()

        self._client.base_url = self._config.base_url
        self._client.timeout = self._config.timeout
        self._client.headers = self._build_headers(self._config.headers)

        if cache_config:
            self.cache.update_config(cache_config)

        self.logger.info(
            "Gateway configuration updated",
            base_url=self._config.base_url,
            timeout=self._config.timeout,
            cache_updated=bool(cache_config)
        )

    def get_connection_status(self) -> ConnectionStatus:
        return ConnectionStatus(
            is_online=self.connection_monitor.is_online(),
            time_since_last_success=self.connection_monitor.get_time_since_last_success(),
            failed_request_count=self.connection_monitor.get_failed_request_count(),
            consecutive_failures=self.connection_monitor.get_consecutive_failures(),
        )

    def reset_connection_status(self) -> None:
        self.connection_monitor.reset()

    def get_diagnostics(self) -> DiagnosticsSummary:
        return self.diagnostics.get_diagnostics()

    def reset_diagnostics(self) -> None:
        self.diagnostics.reset()

    def clear_cache(self) -> None:
        self.cache.clear()

    async def check_health(self, path: str = DEFAULT_HEALTH_PATH) -> HealthCheckResponse:
        """Probe the backend health endpoint, bypassing the response cache."""
        started = time.perf_counter()
        result = await self._call("GET", path, skip_cache=True)
        response_time = time.perf_counter() - started

        if result.success:
            message = result.data.get("status") if isinstance(result.data, dict) else None
            backend = BackendHealth(status="healthy", message=message, response_time=response_time)
        else:
            backend = BackendHealth(
                status="unhealthy",
                message=result.error.message if result.error else None,
                response_time=response_time,
                error=result.error,
            )

        connection = self.get_connection_status()
        if result.success:
            status = "healthy"
        elif connection.is_online:
            status = "degraded"
        else:
            status = "unhealthy"

        return HealthCheckResponse(
            status=status,
            timestamp=datetime.now(timezone.utc).isoformat(),
            backend=backend,
            connection=connection,
        )


def _parse_body(response: httpx.Response) -> Any:
    """Decode a response body as JSON, falling back to text; empty bodies are ``None``."""
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


def create_api_gateway(
    settings: Optional[GatewaySettings] = None,
    registry: Optional[CollectorRegistry] = None,
    **kwargs
) -> ApiGateway:
    """Build a gateway from environment settings.

    Metrics are exported only when a ``registry`` is given, e.g.
    ``prometheus_client.REGISTRY``; an explicit ``metrics`` argument wins.
    """
    settings = settings or get_settings()
    if registry is not None:
        kwargs.setdefault("metrics", GatewayMetrics(registry=registry))
    return ApiGateway(settings.to_gateway_config(), settings.to_cache_config(), **kwargs)
