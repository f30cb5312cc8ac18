"""Turn service responses into locally usable results."""

from __future__ import annotations

import logging
from enum import Enum

import httpx
from pydantic import BaseModel, ConfigDict

from studioforge.core.api.gemini.client import GeminiClient
from studioforge.core.api.gemini.models import GenerateContentResponse, Operation
from studioforge.core.api.http.errors import ApiError
from studioforge.core.studio.assets import ImageAsset, LocalResource, to_data_uri
from studioforge.core.studio.errors import (
    EmptyResultError,
    NoImageReturnedError,
    VideoDownloadError,
)

logger = logging.getLogger(__name__)

VIDEO_MIME_TYPE = "video/mp4"


class ResultKind(str, Enum):
    IMAGE = "image"
    VIDEO = "video"


class GenerationResult(BaseModel):
    """A generated image or video the caller now owns.

    Images are self-contained data URIs. Videos are backed by a temporary
    file (``resource``) that the caller must ``release()`` exactly once.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    kind: ResultKind
    uri: str
    mime_type: str
    resource: LocalResource | None = None
    description: str | None = None

    def read(self) -> bytes:
        """Raw bytes of the result."""
        if self.resource is not None:
            return self.resource.read()
        return ImageAsset.from_data_uri(self.uri).data

    def release(self) -> None:
        """Release the backing temporary resource, if any."""
        if self.resource is not None:
            self.resource.release()


def materialize_image(response: GenerateContentResponse, missing_message: str) -> GenerationResult:
    """Extract the first inline image of the first candidate.

    Args:
        response: Parsed generateContent response
        missing_message: Error message when no image is present

    Raises:
        NoImageReturnedError: No inline image part in the response
    """
    for part in response.first_candidate_parts():
        if part.inline_data is not None and part.inline_data.data:
            return GenerationResult(
                kind=ResultKind.IMAGE,
                uri=to_data_uri(part.inline_data.data, part.inline_data.mime_type),
                mime_type=part.inline_data.mime_type,
                description=response.text() or None,
            )

    text = response.text()
    if text:
        logger.warning("Model returned text without an image: %s", text[:200])
    raise NoImageReturnedError(missing_message)


async def materialize_video(
    client: GeminiClient, operation: Operation, credential: str
) -> GenerationResult:
    """Download the finished operation's video into a temporary file.

    Raises:
        EmptyResultError: The operation carries no video reference
        VideoDownloadError: The download failed
    """
    uri = operation.video_uri()
    if uri is None:
        raise EmptyResultError("Video generation completed but produced no result.")

    try:
        data = await client.download(uri, credential=credential)
    except ApiError as e:
        reason = (
            httpx.codes.get_reason_phrase(e.status_code) if e.status_code is not None else ""
        )
        raise VideoDownloadError(f"Failed to download video: {reason or e.message}") from e

    resource = LocalResource.from_bytes(data, VIDEO_MIME_TYPE, prefix="video-")
    logger.info("Saved %d byte video to %s", len(data), resource.path)
    return GenerationResult(
        kind=ResultKind.VIDEO,
        uri=resource.uri,
        mime_type=VIDEO_MIME_TYPE,
        resource=resource,
    )
