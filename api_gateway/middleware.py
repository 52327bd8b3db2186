"""
Reusable middleware chains for the API gateway.

Each factory returns a :class:`MiddlewareChains`; combine several with
:func:`combine_middleware` and pass the result as ``GatewayConfig.middleware``.
"""

from typing import Callable, Dict, Optional

import httpx

from shared.errors import RequestFailedError
from shared.logging import get_logger, get_request_id, set_request_id
from .models import MiddlewareChains, RequestDescriptor


def create_auth_middleware(get_token: Callable[[], Optional[str]], token_type: str = "Bearer") -> MiddlewareChains:
    """Attach an ``Authorization`` header obtained from ``get_token``.

    The token is fetched on every dispatch, so retries pick up refreshed
    tokens. Requests go out unchanged when no token is available.
    """

    def add_authorization(request: RequestDescriptor) -> RequestDescriptor:
        token = get_token()
        if not token:
            return request
        return request.with_headers({"Authorization": f"{token_type} {token}"})

    return MiddlewareChains(request=[add_authorization])


def create_headers_middleware(headers: Dict[str, str]) -> MiddlewareChains:
    """Add ``headers`` to every request; headers set by the caller win."""

    def add_headers(request: RequestDescriptor) -> RequestDescriptor:
        return request.with_headers(headers, override=False)

    return MiddlewareChains(request=[add_headers])


def create_correlation_id_middleware(header: str = "X-Correlation-ID") -> MiddlewareChains:
    """Tag requests with the context request id, creating one if unset."""

    def add_correlation_id(request: RequestDescriptor) -> RequestDescriptor:
        if header in request.headers:
            return request
        request_id = get_request_id() or set_request_id()
        return request.with_headers({header: request_id})

    return MiddlewareChains(request=[add_correlation_id])


def create_logging_middleware(logger_name: str = "gateway.requests") -> MiddlewareChains:
    """Log every request, response and failure through structlog."""
    logger = get_logger(logger_name)

    def log_request(request: RequestDescriptor) -> RequestDescriptor:
        logger.info(
            "API request",
            method=request.method.upper(),
            endpoint=request.url,
            params=request.params
        )
        return request

    def log_response(response: httpx.Response) -> httpx.Response:
        logger.info(
            "API response",
            status_code=response.status_code,
            method=response.request.method,
            url=str(response.request.url)
        )
        return response

    def log_error(error: RequestFailedError) -> RequestFailedError:
        logger.warning(
            "API error",
            status_code=error.status_code,
            method=error.request.method.upper(),
            endpoint=error.request.url,
            error=error.message
        )
        return error

    return MiddlewareChains(request=[log_request], response=[log_response], error=[log_error])


def combine_middleware(*chains: MiddlewareChains) -> MiddlewareChains:
    """Concatenate chains, preserving the order they are given in."""
    combined = MiddlewareChains()
    for chain in chains:
        combined = combined + chain
    return combined
