"""
Shared error handling for the Market Insights API gateway.
"""

from typing import Any, Dict, Optional, TYPE_CHECKING

import httpx
from pydantic import BaseModel, Field

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from api_gateway.models import RequestDescriptor
    from shared.retry import RetryState


UNKNOWN_ERROR_CODE = "UNKNOWN_ERROR"


class ApiErrorPayload(BaseModel):
    """Error block carried by a failed ``ApiResponse``."""

    message: str
    code: str = UNKNOWN_ERROR_CODE
    details: Any = Field(default_factory=dict)


class GatewayException(Exception):
    """Base exception for the API gateway."""

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ApiErrorPayload:
        """Convert to error payload."""
        return ApiErrorPayload(
            code=self.code,
            message=self.message,
            details=self.details
        )


class ConfigurationError(GatewayException):
    """Invalid gateway or cache configuration."""

    def __init__(self, message: str = "Invalid gateway configuration", details: Optional[Dict[str, Any]] = None):
        super().__init__("CONFIGURATION_ERROR", message, details)


class RequestFailedError(GatewayException):
    """A dispatched request failed at the network or HTTP level.

    ``response`` is ``None`` for network-level failures (connection refused,
    DNS, timeout), in which case no status code is available.
    """

    def __init__(
        self,
        message: str,
        request: "RequestDescriptor",
        response: Optional[httpx.Response] = None,
        retry_state: Optional["RetryState"] = None,
        cause: Optional[BaseException] = None,
    ):
        self.request = request
        self.response = response
        self.retry_state = retry_state
        self.cause = cause
        super().__init__(
            "REQUEST_FAILED",
            message,
            {"method": request.method.upper(), "url": request.url},
        )

    @property
    def status_code(self) -> Optional[int]:
        return self.response.status_code if self.response is not None else None

    @property
    def is_network_error(self) -> bool:
        return self.response is None

    @classmethod
    def from_exception(
        cls,
        exc: Exception,
        request: "RequestDescriptor",
        retry_state: Optional["RetryState"] = None,
    ) -> "RequestFailedError":
        """Wrap an ``httpx`` exception raised while dispatching ``request``."""
        response = exc.response if isinstance(exc, httpx.HTTPStatusError) else None
        message = str(exc) or exc.__class__.__name__
        return cls(message, request, response=response, retry_state=retry_state, cause=exc)


class RetriesExhaustedError(RequestFailedError):
    """Raised when a request still fails after the retry ceiling was reached."""

    @classmethod
    def from_failure(cls, error: RequestFailedError) -> "RetriesExhaustedError":
        return cls(
            error.message,
            error.request,
            response=error.response,
            retry_state=error.retry_state,
            cause=error.cause,
        )

    @property
    def attempts(self) -> int:
        return self.retry_state.count + 1 if self.retry_state is not None else 1
