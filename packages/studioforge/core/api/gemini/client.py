"""Gemini REST API client (image generation, Veo video jobs).

Thin typed layer over ``AsyncApiClient``. Every call takes the caller's
credential explicitly; the client holds no key of its own and performs
no retries (see ``studioforge.core.studio.retry``).
"""

from __future__ import annotations

import logging
from typing import Any

from studioforge.core.api.gemini.models import GenerateContentResponse, Operation
from studioforge.core.api.http.auth import ApiKeyAuth
from studioforge.core.api.http.client import AsyncApiClient
from studioforge.core.api.http.config import HttpClientConfig

logger = logging.getLogger(__name__)

GEMINI_API_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"


class GeminiClient:
    """Async client for the Gemini generation endpoints.

    Args:
        http_client: Framework AsyncApiClient pointed at the Gemini base URL

    Example:
        >>> async with GeminiClient.create() as gemini:
        ...     op = await gemini.submit_video("veo-3.1-fast-generate-preview", body, credential=key)
    """

    def __init__(self, http_client: AsyncApiClient) -> None:
        self.http_client = http_client

    @classmethod
    def create(cls, config: HttpClientConfig | None = None, **kwargs: Any) -> GeminiClient:
        """Build a client with its own HTTP connection pool."""
        config = config or HttpClientConfig(base_url=GEMINI_API_BASE_URL)
        return cls(AsyncApiClient(config, **kwargs))

    async def aclose(self) -> None:
        await self.http_client.aclose()

    async def __aenter__(self) -> GeminiClient:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def generate_content(
        self, model: str, body: dict[str, Any], *, credential: str
    ) -> GenerateContentResponse:
        """Call ``models/{model}:generateContent``.

        Args:
            model: Model identifier (e.g. "gemini-2.5-flash-image")
            body: Request body with contents and generationConfig
            credential: API key

        Returns:
            Parsed response

        Raises:
            ApiError: On HTTP failure or undecodable response
        """
        logger.debug("generateContent model=%s", model)
        resp = await self.http_client.post(
            f"models/{model}:generateContent",
            json_body=body,
            auth=ApiKeyAuth(api_key=credential),
        )
        return self.http_client.parse_pydantic(resp, GenerateContentResponse)

    async def submit_video(self, model: str, body: dict[str, Any], *, credential: str) -> Operation:
        """Start a video job via ``models/{model}:predictLongRunning``.

        Returns:
            Initial operation handle (normally not done)
        """
        logger.debug("predictLongRunning model=%s", model)
        resp = await self.http_client.post(
            f"models/{model}:predictLongRunning",
            json_body=body,
            auth=ApiKeyAuth(api_key=credential),
        )
        operation = self.http_client.parse_pydantic(resp, Operation)
        logger.info("Submitted video operation %s", operation.name)
        return operation

    async def get_operation(self, name: str, *, credential: str) -> Operation:
        """Fetch the current status of a long-running operation."""
        resp = await self.http_client.get(name, auth=ApiKeyAuth(api_key=credential))
        return self.http_client.parse_pydantic(resp, Operation)

    async def download(self, uri: str, *, credential: str) -> bytes:
        """Fetch generated media bytes, passing the key as a query parameter."""
        resp = await self.http_client.get(
            uri, auth=ApiKeyAuth(api_key=credential, location="query")
        )
        return resp.content
