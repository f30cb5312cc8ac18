"""Async HTTP client wrapper built on HTTPX.

Provides:
- Structured error handling (status code -> ApiError subclass)
- Request/response logging with header redaction
- Per-request auth (credentials are never stored on the client)
- Pydantic response parsing

No retries happen here. Callers wrap remote operations with
``execute_with_retry`` (see ``studioforge.core.studio.retry``).
"""

from __future__ import annotations

import time
from collections.abc import Mapping, Sequence
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel

from studioforge.core.api.http.config import HttpClientConfig
from studioforge.core.api.http.errors import (
    ApiError,
    AuthError,
    ClientError,
    DecodeError,
    NetworkError,
    RateLimitError,
    ServerError,
    TimeoutError,
    UnexpectedStatusError,
)
from studioforge.core.api.http.logging_utils import RequestLogContext, log_request, log_response
from studioforge.core.api.http.utils import get_request_id, join_url, safe_snippet, strip_query

ModelT = TypeVar("ModelT", bound=BaseModel)


def _default_request_id() -> str:
    """Generate simple timestamp-based request ID."""
    return f"req_{int(time.time() * 1000)}"


def _is_json_response(resp: httpx.Response) -> bool:
    """Check if response content-type indicates JSON."""
    ctype = resp.headers.get("content-type", "")
    return "application/json" in ctype or "+json" in ctype


def _categorize_http_error(status_code: int) -> type[ApiError]:
    """Map HTTP status code to appropriate error class."""
    if status_code in (401, 403):
        return AuthError
    if status_code == 429:
        return RateLimitError
    if 400 <= status_code < 500:
        return ClientError
    if 500 <= status_code < 600:
        return ServerError
    return UnexpectedStatusError


def _build_api_error(
    *,
    exc_type: type[ApiError],
    message: str,
    method: str,
    url: str,
    status_code: int | None = None,
    response: httpx.Response | None = None,
    request_id: str | None = None,
    body_snippet_limit: int = 4096,
    cause: BaseException | None = None,
) -> ApiError:
    """Build API error with response context.

    Args:
        exc_type: Error class to instantiate
        message: Human-readable error message
        method: HTTP method
        url: Request URL (query string is dropped)
        status_code: HTTP status code (if available)
        response: HTTP response (if available)
        request_id: Request ID for tracing
        body_snippet_limit: Max bytes to include in error
        cause: Original exception that triggered this error

    Returns:
        Constructed API error
    """
    headers: dict[str, str] | None = None
    snippet: str | None = None
    if response is not None:
        headers = dict(response.headers)
        snippet = safe_snippet(response.content or b"", body_snippet_limit)
        request_id = request_id or get_request_id(response.headers)

    return exc_type(
        message=message,
        method=method,
        url=strip_query(url),
        status_code=status_code,
        request_id=request_id,
        response_headers=headers,
        response_body_snippet=snippet,
        cause=cause,
    )


class AsyncApiClient:
    """Asynchronous HTTP API client.

    Built on httpx.AsyncClient with structured errors and observability.

    Args:
        config: Client configuration
        transport: Optional custom transport (useful for testing)

    Example:
        >>> config = HttpClientConfig(base_url="https://api.example.com")
        >>> async with AsyncApiClient(config) as client:
        ...     resp = await client.get("/v1/users", auth=ApiKeyAuth(api_key="k"))
        ...     data = client.json(resp)
    """

    def __init__(
        self,
        config: HttpClientConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self._client = httpx.AsyncClient(
            base_url=config.base_url,
            headers={"User-Agent": config.user_agent, **config.headers},
            timeout=config.timeout,
            limits=config.limits,
            follow_redirects=config.follow_redirects,
            transport=transport,
        )

    async def aclose(self) -> None:
        """Close the underlying HTTP client and release resources."""
        await self._client.aclose()

    async def __aenter__(self) -> AsyncApiClient:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
        json_body: Any = None,
        auth: httpx.Auth | None = None,
        timeout: httpx.Timeout | None = None,
        expected_status: Sequence[int] | None = None,
    ) -> httpx.Response:
        """Send a single HTTP request.

        Args:
            method: HTTP method
            path: Path relative to base_url, or an absolute URL
            params: Query parameters
            headers: Extra request headers
            json_body: JSON-serializable request body
            auth: Per-request authentication
            timeout: Override for the configured timeout
            expected_status: Accepted status codes (default: any < 400)

        Returns:
            HTTP response

        Raises:
            ApiError: On HTTP error status, timeout, or transport failure
        """
        method_u = method.upper()
        url = join_url(str(self._client.base_url), path)
        req_id = headers.get("X-Request-Id") if headers else None
        req_id = req_id or _default_request_id()

        merged_headers = dict(self._client.headers)
        if headers:
            merged_headers.update(headers)
        merged_headers.setdefault("X-Request-Id", req_id)

        ctx = RequestLogContext(method=method_u, url=strip_query(url), request_id=req_id)
        start = log_request(ctx, merged_headers, self.config.redact_headers)

        try:
            resp = await self._client.request(
                method_u,
                url,
                params=dict(params) if params else None,
                headers=merged_headers,
                json=json_body,
                auth=auth if auth is not None else httpx.USE_CLIENT_DEFAULT,
                timeout=timeout or self.config.timeout,
            )
        except httpx.TimeoutException as e:
            raise _build_api_error(
                exc_type=TimeoutError,
                message="Request timed out",
                method=method_u,
                url=url,
                request_id=req_id,
                cause=e,
            ) from e
        except httpx.RequestError as e:
            raise _build_api_error(
                exc_type=NetworkError,
                message="Network error while sending request",
                method=method_u,
                url=url,
                request_id=req_id,
                cause=e,
            ) from e

        log_response(ctx, resp.status_code, time.perf_counter() - start)

        if expected_status is not None:
            failed = resp.status_code not in expected_status
            message = f"Unexpected status code (expected {list(expected_status)})"
        else:
            failed = resp.status_code >= 400
            message = "HTTP error response"

        if failed:
            raise _build_api_error(
                exc_type=_categorize_http_error(resp.status_code),
                message=message,
                method=method_u,
                url=url,
                status_code=resp.status_code,
                response=resp,
                request_id=req_id,
                body_snippet_limit=self.config.max_response_body_for_error,
            )

        return resp

    async def get(self, path: str, **kwargs: Any) -> httpx.Response:
        """Perform async GET request."""
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs: Any) -> httpx.Response:
        """Perform async POST request."""
        return await self.request("POST", path, **kwargs)

    def json(self, response: httpx.Response) -> Any:
        """Decode JSON response with structured error handling.

        Args:
            response: HTTP response to decode

        Returns:
            Decoded JSON data (dict, list, etc.), or None for empty bodies

        Raises:
            DecodeError: If response is not JSON or parsing fails
        """
        if response.status_code == 204 or not response.content:
            return None
        if not _is_json_response(response):
            raise _build_api_error(
                exc_type=DecodeError,
                message="Response is not JSON (content-type mismatch)",
                method=response.request.method,
                url=str(response.request.url),
                status_code=response.status_code,
                response=response,
                body_snippet_limit=self.config.max_response_body_for_error,
            )
        try:
            return response.json()
        except ValueError as e:
            raise _build_api_error(
                exc_type=DecodeError,
                message="Failed to parse JSON response",
                method=response.request.method,
                url=str(response.request.url),
                status_code=response.status_code,
                response=response,
                body_snippet_limit=self.config.max_response_body_for_error,
                cause=e,
            ) from e

    def parse_pydantic(self, response: httpx.Response, model: type[ModelT]) -> ModelT:
        """Parse and validate JSON response with a Pydantic model.

        Raises:
            DecodeError: If JSON parsing or validation fails
        """
        data = self.json(response)
        try:
            return model.model_validate(data)
        except ValueError as e:
            raise _build_api_error(
                exc_type=DecodeError,
                message=f"Failed to validate response as {model.__name__}",
                method=response.request.method,
                url=str(response.request.url),
                status_code=response.status_code,
                response=response,
                body_snippet_limit=self.config.max_response_body_for_error,
                cause=e,
            ) from e
