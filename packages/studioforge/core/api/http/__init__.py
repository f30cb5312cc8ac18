"""HTTPX wrapper used by the service clients.

Exposes a small, ergonomic surface:
- AsyncApiClient: high-level async client
- HttpClientConfig: configuration
- Exceptions: ApiError and subclasses
- ApiKeyAuth: per-request API key auth (header or query parameter)
"""

from studioforge.core.api.http.auth import ApiKeyAuth
from studioforge.core.api.http.client import AsyncApiClient
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

__all__ = [
    "AsyncApiClient",
    "HttpClientConfig",
    "ApiKeyAuth",
    "ApiError",
    "NetworkError",
    "TimeoutError",
    "DecodeError",
    "RateLimitError",
    "AuthError",
    "ClientError",
    "ServerError",
    "UnexpectedStatusError",
]
