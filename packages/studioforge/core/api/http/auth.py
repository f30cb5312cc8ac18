from __future__ import annotations

from collections.abc import AsyncGenerator, Generator
from typing import Literal

import httpx
from pydantic import BaseModel, Field, field_validator


class ApiKeyAuth(httpx.Auth, BaseModel):
    """Static API key authentication, applied per request.

    The key is placed either in a header (Gemini REST calls use
    ``x-goog-api-key``) or in a query parameter (generated video URIs are
    fetched with ``?key=``). Instances are built for a single call and never
    cached on a client, so the credential stays caller-owned.

    Args:
        api_key: API key value
        header_name: Header name used when ``location="header"``
        query_param: Query parameter used when ``location="query"``
        location: Where to put the key

    Example:
        >>> auth = ApiKeyAuth(api_key="secret")
        >>> download_auth = ApiKeyAuth(api_key="secret", location="query")
    """

    model_config = {"frozen": True, "arbitrary_types_allowed": True}

    api_key: str = Field(repr=False)  # Don't leak secrets in repr
    header_name: str = "x-goog-api-key"
    query_param: str = "key"
    location: Literal["header", "query"] = "header"

    @field_validator("api_key")
    @classmethod
    def validate_api_key(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("api_key cannot be empty")
        return v.strip()

    def _apply(self, request: httpx.Request) -> None:
        if self.location == "query":
            request.url = request.url.copy_merge_params({self.query_param: self.api_key})
        else:
            request.headers[self.header_name] = self.api_key

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        """Apply API key to request (sync)."""
        self._apply(request)
        yield request

    async def async_auth_flow(
        self, request: httpx.Request
    ) -> AsyncGenerator[httpx.Request, httpx.Response]:
        """Apply API key to request (async)."""
        self._apply(request)
        yield request
