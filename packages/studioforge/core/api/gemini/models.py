"""Response models for the Gemini REST API.

Only the fields the studio reads are declared; everything else is kept
via ``extra="allow"`` so responses survive API additions. Both camelCase
(REST) and snake_case (SDK dumps) keys are accepted.
"""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class _ApiModel(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)


class InlineData(_ApiModel):
    """Inline binary payload (base64 encoded)."""

    mime_type: str = Field(
        default="image/png", validation_alias=AliasChoices("mimeType", "mime_type")
    )
    data: str = ""


class Part(_ApiModel):
    """One content segment of a response."""

    text: str | None = None
    inline_data: InlineData | None = Field(
        default=None, validation_alias=AliasChoices("inlineData", "inline_data")
    )


class Content(_ApiModel):
    role: str | None = None
    parts: list[Part] = Field(default_factory=list)


class Candidate(_ApiModel):
    content: Content | None = None
    finish_reason: str | None = Field(
        default=None, validation_alias=AliasChoices("finishReason", "finish_reason")
    )


class GenerateContentResponse(_ApiModel):
    """Response of ``models/{model}:generateContent``."""

    candidates: list[Candidate] = Field(default_factory=list)

    def first_candidate_parts(self) -> list[Part]:
        """Parts of the first candidate (empty when there is none)."""
        if not self.candidates or self.candidates[0].content is None:
            return []
        return self.candidates[0].content.parts

    def text(self) -> str:
        """Concatenated text parts of the first candidate."""
        return "".join(p.text for p in self.first_candidate_parts() if p.text)


class OperationError(_ApiModel):
    """Error payload of a finished long-running operation."""

    code: int | None = None
    message: str = "Operation failed"
    status: str | None = None


class Operation(_ApiModel):
    """Long-running operation handle.

    Pending while ``done`` is false; terminal once ``done`` is true, with
    either ``response`` or ``error`` populated.
    """

    name: str
    done: bool = False
    response: dict[str, Any] | None = None
    error: OperationError | None = None

    def _samples(self) -> list[dict[str, Any]]:
        if not self.response:
            return []
        # REST shape first, then the SDK shape
        video_response = self.response.get("generateVideoResponse") or {}
        samples = video_response.get("generatedSamples")
        if samples is None:
            samples = self.response.get("generatedVideos")
        return samples if isinstance(samples, list) else []

    def video_uri(self) -> str | None:
        """URI of the first generated video, if any."""
        for sample in self._samples():
            video = sample.get("video") if isinstance(sample, dict) else None
            if isinstance(video, dict) and video.get("uri"):
                return str(video["uri"])
        return None

    def filtered_reasons(self) -> list[str]:
        """Safety-filter reasons reported instead of a result."""
        if not self.response:
            return []
        video_response = self.response.get("generateVideoResponse") or {}
        reasons = video_response.get("raiMediaFilteredReasons") or []
        return [str(r) for r in reasons]
