"""Studio service - one entry point per generation mode.

Each call follows the same sequence: build (fails fast, no remote call),
invoke the service under the retry policy, then materialize. Video jobs
add the submit/poll step in between.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from studioforge.core.api.gemini.client import GeminiClient
from studioforge.core.api.http.client import AsyncApiClient
from studioforge.core.config.models import AppConfig, ModelSettings
from studioforge.core.studio.materializer import (
    GenerationResult,
    materialize_image,
    materialize_video,
)
from studioforge.core.studio.poller import OperationPoller
from studioforge.core.studio.requests import (
    ContentGenerationPayload,
    GenerationRequest,
    OutfitSwapRequest,
    PosterRequest,
    VideoRequest,
)
from studioforge.core.studio.retry import IMAGE_RETRY_POLICY, RetryPolicy, SleepFn

logger = logging.getLogger(__name__)


class StudioService:
    """Runs outfit swaps, posters, and video jobs against Gemini.

    Args:
        client: Gemini REST client
        models: Model selection
        image_policy: Retry policy for image edits
        poller: Video operation poller (built from ``client`` when omitted)
        sleep: Awaitable sleep function shared by retries and polling

    Example:
        >>> async with StudioService.from_config(load_app_config()) as studio:
        ...     result = await studio.generate(PosterRequest(...))
    """

    def __init__(
        self,
        client: GeminiClient,
        *,
        models: ModelSettings | None = None,
        image_policy: RetryPolicy = IMAGE_RETRY_POLICY,
        poller: OperationPoller | None = None,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        self.client = client
        self.models = models or ModelSettings()
        self.image_policy = image_policy
        self.poller = poller or OperationPoller(client, sleep=sleep)
        self._sleep = sleep

    @classmethod
    def from_config(cls, config: AppConfig, **kwargs: Any) -> StudioService:
        """Build a service from app config.

        Args:
            config: Application configuration
            **kwargs: Passed to ``AsyncApiClient`` (e.g. ``transport``) except
                ``sleep``, which is used for retries and polling
        """
        sleep: SleepFn = kwargs.pop("sleep", asyncio.sleep)
        client = GeminiClient(AsyncApiClient(config.api.http_config(), **kwargs))
        poller = OperationPoller(
            client,
            config.retry.video_submit,
            poll_interval_s=config.polling.poll_interval_s,
            transient_backoff_s=config.polling.transient_backoff_s,
            sleep=sleep,
        )
        return cls(
            client,
            models=config.models,
            image_policy=config.retry.image,
            poller=poller,
            sleep=sleep,
        )

    async def aclose(self) -> None:
        await self.client.aclose()

    async def __aenter__(self) -> StudioService:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def _edit_image(
        self, payload: ContentGenerationPayload, credential: str, label: str
    ) -> GenerationResult:
        body = payload.to_body()
        logger.info(
            "%s: model=%s ratio=%s images=%d",
            label,
            payload.model,
            payload.aspect_ratio,
            payload.image_count,
        )
        response = await self.image_policy.run(
            lambda: self.client.generate_content(payload.model, body, credential=credential),
            sleep=self._sleep,
            label=label,
        )
        return materialize_image(response, payload.missing_image_message)

    async def swap_outfit(self, request: OutfitSwapRequest) -> GenerationResult:
        """Dress the character in the outfit.

        Raises:
            RequestValidationError: A required image or the credential is missing
            ServiceBusyError: Rate limited through every attempt
            NoImageReturnedError: The model answered without an image
        """
        payload = request.build(self.models)
        return await self._edit_image(payload, request.require_credential(), "Outfit swap")

    async def generate_poster(self, request: PosterRequest) -> GenerationResult:
        """Compose a themed product poster."""
        payload = request.build(self.models)
        return await self._edit_image(payload, request.require_credential(), "Poster")

    async def generate_video(self, request: VideoRequest) -> GenerationResult:
        """Run a video job to completion and download the result.

        Raises:
            RequestValidationError: Prompt or credential missing
            ServiceBusyError: Submission rate limited through every attempt
            OperationFailedError: The job finished with an error
            EmptyResultError: The job finished without a video
            VideoDownloadError: The finished video could not be fetched
        """
        payload = request.build(self.models)
        credential = request.require_credential()
        logger.info(
            "Video: model=%s ratio=%s resolution=%s reference=%s",
            payload.model,
            payload.aspect_ratio,
            payload.resolution,
            payload.reference_image is not None,
        )
        operation = await self.poller.run(payload, credential)
        return await materialize_video(self.client, operation, credential)

    async def generate(self, request: GenerationRequest) -> GenerationResult:
        """Dispatch on the request type."""
        if isinstance(request, OutfitSwapRequest):
            return await self.swap_outfit(request)
        if isinstance(request, PosterRequest):
            return await self.generate_poster(request)
        if isinstance(request, VideoRequest):
            return await self.generate_video(request)
        raise TypeError(f"Unsupported request type: {type(request).__name__}")
