"""Generation requests and the payloads they build.

Each user action is one frozen ``GenerationRequest`` subclass carrying its
own credential. ``build()`` validates required fields (raising before any
remote call) and composes a provider payload:

- ``ContentGenerationPayload`` for image edits (ordered text + image parts)
- ``VideoJobPayload`` for video jobs

Segment order matters: instructions refer to "the first image", "the
second image" and so on, and the model resolves those positionally.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field

from studioforge.core.config.models import ModelSettings
from studioforge.core.studio.assets import ImageAsset, clean_base64
from studioforge.core.studio.errors import CredentialError, RequestValidationError
from studioforge.core.studio.vocabulary import (
    AppMode,
    AspectRatio,
    PoseType,
    image_ratio_code,
    pose_instruction,
    ratio_phrase,
    video_ratio_code,
)

VIDEO_STYLE_DIRECTIVE = (
    "Cinematic, photorealistic quality with natural lighting, smooth camera motion, "
    "and rich, consistent detail."
)


class InlineImage(BaseModel):
    """Image payload as bare base64 plus media type."""

    model_config = ConfigDict(frozen=True)

    mime_type: str
    data: str = Field(repr=False)

    @classmethod
    def from_asset(cls, asset: ImageAsset) -> InlineImage:
        return cls(mime_type=asset.mime_type, data=clean_base64(asset.base64))


class ContentSegment(BaseModel):
    """One ordered part of a multi-segment request: text or an image."""

    model_config = ConfigDict(frozen=True)

    text: str | None = None
    image: InlineImage | None = None

    def to_part(self) -> dict[str, Any]:
        if self.image is not None:
            return {"inlineData": {"mimeType": self.image.mime_type, "data": self.image.data}}
        return {"text": self.text or ""}


class ContentGenerationPayload(BaseModel):
    """Image-edit call: model, ordered segments, ratio code."""

    model_config = ConfigDict(frozen=True)

    model: str
    segments: tuple[ContentSegment, ...]
    aspect_ratio: str
    missing_image_message: str = "No image data returned from the model."

    @property
    def instruction(self) -> str:
        """Instruction text (always the first segment)."""
        return self.segments[0].text or ""

    @property
    def image_count(self) -> int:
        return sum(1 for s in self.segments if s.image is not None)

    def to_body(self) -> dict[str, Any]:
        """Gemini ``generateContent`` request body."""
        return {
            "contents": [{"parts": [s.to_part() for s in self.segments]}],
            "generationConfig": {
                "responseModalities": ["IMAGE", "TEXT"],
                "imageConfig": {"aspectRatio": self.aspect_ratio},
            },
        }


class VideoJobPayload(BaseModel):
    """Video job submission: model, enhanced prompt, ratio, resolution."""

    model_config = ConfigDict(frozen=True)

    model: str
    prompt: str
    aspect_ratio: str
    resolution: str = "720p"
    number_of_videos: int = Field(default=1, ge=1)
    reference_image: InlineImage | None = None

    def to_body(self) -> dict[str, Any]:
        """Gemini ``predictLongRunning`` request body."""
        instance: dict[str, Any] = {"prompt": self.prompt}
        if self.reference_image is not None:
            instance["image"] = {
                "bytesBase64Encoded": self.reference_image.data,
                "mimeType": self.reference_image.mime_type,
            }
        return {
            "instances": [instance],
            "parameters": {
                "aspectRatio": self.aspect_ratio,
                "resolution": self.resolution,
                "sampleCount": self.number_of_videos,
            },
        }


class GenerationRequest(BaseModel, ABC):
    """Base for all studio requests.

    Frozen once constructed. Required fields are checked by ``build()``
    rather than at construction, so an incomplete form still yields an
    object whose ``build()`` reports exactly what is missing.
    """

    model_config = ConfigDict(frozen=True)

    mode: ClassVar[AppMode]

    credential: str = Field(default="", repr=False)
    ratio: AspectRatio = AspectRatio.RATIO_1_1

    def require_credential(self) -> str:
        """Return the stripped credential or fail before any remote call."""
        key = self.credential.strip()
        if not key:
            raise CredentialError("An API key is required. Please set your Gemini API key.")
        return key

    @abstractmethod
    def build(
        self, models: ModelSettings | None = None
    ) -> ContentGenerationPayload | VideoJobPayload:
        """Validate and compose the provider payload."""


def _numbered(lines: list[str]) -> str:
    return "\n".join(f"{i}. {line}" for i, line in enumerate(lines, start=1))


class OutfitSwapRequest(GenerationRequest):
    """Dress the character in the outfit, optionally re-posed and holding a product."""

    mode: ClassVar[AppMode] = AppMode.OUTFIT_SWAP

    character: ImageAsset | None = None
    outfit: ImageAsset | None = None
    handheld: ImageAsset | None = None
    pose: PoseType = PoseType.ORIGINAL

    def instruction_text(self) -> str:
        requirements: list[str] = []
        pose_text = pose_instruction(self.pose)
        if pose_text is None:
            requirements.append(
                "STRICTLY maintain the identity, face, expression, pose, and body "
                "proportions of the person in the first image."
            )
        else:
            requirements.append(
                "STRICTLY maintain the identity, face, expression, and body proportions "
                "of the person in the first image."
            )
            requirements.append(
                f"CHANGE the character's pose to: {pose_text}. Ensure the anatomy is "
                "natural and the clothes drape realistically for this new pose while "
                "keeping the same identity."
            )
        requirements.append(
            "The new outfit must look photorealistic, following the body curvature, "
            "lighting, and shadows of the scene."
        )
        requirements.append(
            f"Composition: Ensure the subject is framed perfectly for a "
            f"{ratio_phrase(self.ratio)} aspect ratio. Keep the subject in the main focus area."
        )
        requirements.append("Output ONLY the modified image.")
        if self.handheld is not None:
            held = [
                "HANDHELD ITEM: A third image (product) is provided. You MUST place this "
                "product in the character's hand.",
                "   - Adjust the character's fingers and grip to hold the object naturally "
                "and realistically.",
                "   - Ensure the product's scale is appropriate relative to the character.",
                "   - Match the lighting and shadows of the product to the scene.",
            ]
            if pose_text is not None:
                held.append(
                    "   - Ensure the product is held naturally within the new pose."
                )
            requirements.append("\n".join(held))

        lines = [
            "You are a professional fashion editor and visual effects artist.",
            "Task: Replace the clothes of the person in the first image with the outfit "
            "shown in the second image.",
        ]
        if self.handheld is not None:
            lines.append(
                "Also, integrate the product from the third image into the character's hand."
            )
        lines += ["", "Requirements:", _numbered(requirements)]
        return "\n".join(lines)

    def build(self, models: ModelSettings | None = None) -> ContentGenerationPayload:
        if self.character is None:
            raise RequestValidationError("A character image is required for an outfit swap.")
        if self.outfit is None:
            raise RequestValidationError("An outfit reference image is required for an outfit swap.")
        self.require_credential()
        models = models or ModelSettings()

        segments = [
            ContentSegment(text=self.instruction_text()),
            ContentSegment(image=InlineImage.from_asset(self.character)),
            ContentSegment(image=InlineImage.from_asset(self.outfit)),
        ]
        if self.handheld is not None:
            segments.append(ContentSegment(image=InlineImage.from_asset(self.handheld)))

        return ContentGenerationPayload(
            model=models.image_model,
            segments=tuple(segments),
            aspect_ratio=image_ratio_code(self.ratio),
            missing_image_message="No image data returned from the model.",
        )


class PosterRequest(GenerationRequest):
    """Place the product into a themed commercial poster, optionally branded."""

    mode: ClassVar[AppMode] = AppMode.PRODUCT_POSTER

    product: ImageAsset | None = None
    theme: str = ""
    logo: ImageAsset | None = None

    def instruction_text(self) -> str:
        steps = [
            "Keep the product EXACTLY as it is (do not distort shape, label, or details).",
            "Remove the original background and replace it with a background described "
            f'as: "{self.theme.strip()}".',
            "Ensure the lighting on the product matches the new environment naturally.",
            f"Composition: Optimize the layout for a {ratio_phrase(self.ratio)} format. "
            "The product should be the central focus, balanced with negative space and "
            "background elements.",
        ]
        if self.logo is not None:
            steps.append(
                "Incorporate the second image (logo) into the poster design. Place it "
                "professionally (e.g., in a corner or balanced position) as a tasteful "
                "branding element. Do not distort the logo text or shape."
            )

        lines = [
            "You are a world-class product photographer and marketing designer.",
            "Task: Create a high-end commercial poster for the product in the first image.",
        ]
        if self.logo is not None:
            lines.append("The second image provided is the brand logo.")
        lines += ["", "Instructions:", _numbered(steps)]
        return "\n".join(lines)

    def build(self, models: ModelSettings | None = None) -> ContentGenerationPayload:
        if self.product is None:
            raise RequestValidationError("A product image is required for a poster.")
        if not self.theme.strip():
            raise RequestValidationError("A theme description is required for a poster.")
        self.require_credential()
        models = models or ModelSettings()

        segments = [
            ContentSegment(text=self.instruction_text()),
            ContentSegment(image=InlineImage.from_asset(self.product)),
        ]
        if self.logo is not None:
            segments.append(ContentSegment(image=InlineImage.from_asset(self.logo)))

        return ContentGenerationPayload(
            model=models.image_model,
            segments=tuple(segments),
            aspect_ratio=image_ratio_code(self.ratio),
            missing_image_message="No image generated.",
        )


class VideoRequest(GenerationRequest):
    """Short video from a prompt, optionally guided by a reference image."""

    mode: ClassVar[AppMode] = AppMode.VIDEO_GENERATION

    prompt: str = ""
    reference: ImageAsset | None = None
    ratio: AspectRatio = AspectRatio.RATIO_16_9

    def enhanced_prompt(self) -> str:
        return (
            f"{self.prompt.strip()}\n\n"
            f"Style: {VIDEO_STYLE_DIRECTIVE}\n"
            f"Composition: Frame every shot for a {ratio_phrase(self.ratio)} format, "
            "keeping the main subject clearly in focus."
        )

    def build(self, models: ModelSettings | None = None) -> VideoJobPayload:
        if not self.prompt.strip():
            raise RequestValidationError("A prompt is required to generate a video.")
        self.require_credential()
        models = models or ModelSettings()

        return VideoJobPayload(
            model=models.video_model,
            prompt=self.enhanced_prompt(),
            aspect_ratio=video_ratio_code(self.ratio),
            resolution=models.video_resolution,
            reference_image=(
                InlineImage.from_asset(self.reference) if self.reference is not None else None
            ),
        )
