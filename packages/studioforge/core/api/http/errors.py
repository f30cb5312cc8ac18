from __future__ import annotations

import json

from pydantic import BaseModel, Field


class ApiErrorData(BaseModel):
    """Structured data for HTTP API errors.

    Args:
        message: Human-readable error description
        method: HTTP method (GET, POST, etc.)
        url: Request URL (never includes query parameters)
        status_code: HTTP status code (if available)
        error_status: Service status token from the error envelope
            (e.g. "RESOURCE_EXHAUSTED", "UNAVAILABLE")
        service_message: Message reported by the service in the error envelope
        request_id: Request ID for tracing (from X-Request-Id header)
        response_headers: Response headers (if available)
        response_body_snippet: Truncated response body for debugging
        cause: Original exception that caused this error
    """

    model_config = {"arbitrary_types_allowed": True}

    message: str
    method: str
    url: str
    status_code: int | None = None
    error_status: str | None = None
    service_message: str | None = None
    request_id: str | None = None
    response_headers: dict[str, str] | None = None
    response_body_snippet: str | None = None
    cause: BaseException | None = Field(default=None, repr=False)


def parse_error_envelope(snippet: str | None) -> tuple[str | None, str | None]:
    """Extract (status token, message) from a Google-style error body.

    The Gemini API reports failures as
    ``{"error": {"code": 429, "message": "...", "status": "RESOURCE_EXHAUSTED"}}``.

    Args:
        snippet: Response body text (possibly truncated)

    Returns:
        Tuple of status token and service message; either may be None
    """
    if not snippet:
        return None, None
    try:
        payload = json.loads(snippet)
    except ValueError:
        return None, None
    if not isinstance(payload, dict):
        return None, None
    error = payload.get("error")
    if not isinstance(error, dict):
        return None, None
    status = error.get("status")
    message = error.get("message")
    return (
        status if isinstance(status, str) else None,
        message if isinstance(message, str) else None,
    )


class ApiError(Exception):
    """Base exception for all HTTP client errors.

    Wraps structured error data in an exception for ergonomic error handling.

    Attributes:
        data: Structured error data (ApiErrorData)
        message: Human-readable error description
        method: HTTP method
        url: Request URL
        status_code: HTTP status code (if available)
        error_status: Service status token (if the body carried one)
        service_message: Service-reported message (if the body carried one)
        request_id: Request ID for tracing
        response_headers: Response headers (if available)
        response_body_snippet: Truncated response body
        cause: Original exception that caused this error
    """

    def __init__(
        self,
        *,
        message: str,
        method: str,
        url: str,
        status_code: int | None = None,
        error_status: str | None = None,
        service_message: str | None = None,
        request_id: str | None = None,
        response_headers: dict[str, str] | None = None,
        response_body_snippet: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        if error_status is None and service_message is None:
            error_status, service_message = parse_error_envelope(response_body_snippet)
        self.data = ApiErrorData(
            message=message,
            method=method,
            url=url,
            status_code=status_code,
            error_status=error_status,
            service_message=service_message,
            request_id=request_id,
            response_headers=response_headers,
            response_body_snippet=response_body_snippet,
            cause=cause,
        )
        self.message = self.data.message
        self.method = self.data.method
        self.url = self.data.url
        self.status_code = self.data.status_code
        self.error_status = self.data.error_status
        self.service_message = self.data.service_message
        self.request_id = self.data.request_id
        self.response_headers = self.data.response_headers
        self.response_body_snippet = self.data.response_body_snippet
        self.cause = self.data.cause

        super().__init__(str(self))

    def __str__(self) -> str:
        """Format error for logging and display."""
        parts = [self.message, f"{self.method} {self.url}"]
        if self.status_code is not None:
            parts.append(f"status={self.status_code}")
        if self.error_status:
            parts.append(self.error_status)
        if self.service_message:
            parts.append(self.service_message)
        if self.request_id:
            parts.append(f"request_id={self.request_id}")
        return " | ".join(parts)


class NetworkError(ApiError):
    """Network-level error (DNS, connection reset, etc.)."""


class TimeoutError(ApiError):
    """Request timed out."""


class DecodeError(ApiError):
    """Failed to decode response body (JSON/schema)."""


class RateLimitError(ApiError):
    """HTTP 429 rate limit or quota error."""


class AuthError(ApiError):
    """HTTP 401/403 authentication or authorization error."""


class ClientError(ApiError):
    """HTTP 4xx client error (excluding auth and rate limit)."""


class ServerError(ApiError):
    """HTTP 5xx server error."""


class UnexpectedStatusError(ApiError):
    """Non-2xx status that doesn't match a more specific category."""
