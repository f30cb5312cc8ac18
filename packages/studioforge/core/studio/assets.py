"""Image assets and temporary local resource handles.

Every handle backed by a temporary file (asset previews, downloaded
videos) is a ``LocalResource``. A resource is released exactly once:
using or releasing it again raises ``ResourceReleasedError``.
"""

from __future__ import annotations

import base64
import binascii
import logging
import mimetypes
import re
import tempfile
from pathlib import Path
from typing import Self

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator

from studioforge.core.studio.errors import AssetValidationError, ResourceReleasedError

logger = logging.getLogger(__name__)

_DATA_URI_PREFIX = re.compile(r"^data:(.*,)?")
_DATA_URI = re.compile(r"^data:(?P<mime>[^;,]+)?(?P<b64>;base64)?,(?P<payload>.*)$", re.DOTALL)


def _is_image_type(mime_type: str) -> bool:
    return mime_type.strip().lower().startswith("image/")


def clean_base64(payload: str) -> str:
    """Strip a ``data:<mime>;base64,`` prefix, leaving bare base64."""
    return _DATA_URI_PREFIX.sub("", payload, count=1)


def to_data_uri(payload_b64: str, mime_type: str) -> str:
    """Build a directly renderable data URI from bare base64."""
    return f"data:{mime_type};base64,{clean_base64(payload_b64)}"


class LocalResource:
    """Temporary file standing in for an in-memory object URL.

    Args:
        path: File holding the resource bytes
        mime_type: Declared media type

    Example:
        >>> with LocalResource.from_bytes(b"...", "video/mp4") as video:
        ...     print(video.uri)
    """

    def __init__(self, path: Path, mime_type: str) -> None:
        self._path = path
        self.mime_type = mime_type
        self._released = False

    @classmethod
    def from_bytes(cls, data: bytes, mime_type: str, *, prefix: str = "studioforge-") -> Self:
        """Write ``data`` to a fresh temporary file."""
        suffix = mimetypes.guess_extension(mime_type) or ".bin"
        with tempfile.NamedTemporaryFile(prefix=prefix, suffix=suffix, delete=False) as fh:
            fh.write(data)
        logger.debug("Created local resource %s (%d bytes)", fh.name, len(data))
        return cls(Path(fh.name), mime_type)

    @property
    def released(self) -> bool:
        return self._released

    def _check(self) -> None:
        if self._released:
            raise ResourceReleasedError(f"Resource {self._path.name} was already released")

    @property
    def path(self) -> Path:
        self._check()
        return self._path

    @property
    def uri(self) -> str:
        """Locally addressable ``file://`` URI."""
        return self.path.as_uri()

    def read(self) -> bytes:
        return self.path.read_bytes()

    def release(self) -> None:
        """Delete the backing file. Must be called exactly once."""
        self._check()
        self._released = True
        self._path.unlink(missing_ok=True)
        logger.debug("Released local resource %s", self._path.name)

    def __enter__(self) -> Self:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if not self._released:
            self.release()

    def __repr__(self) -> str:
        state = "released" if self._released else str(self._path)
        return f"LocalResource({self.mime_type}, {state})"


class ImageAsset(BaseModel):
    """A user-supplied image: bytes, media type, and a preview handle.

    Immutable once created. The preview file is created on first access
    and released by ``release_preview`` (normally via ``AssetSlot``).
    """

    model_config = ConfigDict(frozen=True)

    data: bytes = Field(repr=False, min_length=1)
    mime_type: str
    name: str | None = None

    _preview: LocalResource | None = PrivateAttr(default=None)
    _discarded: bool = PrivateAttr(default=False)

    @field_validator("mime_type")
    @classmethod
    def validate_mime_type(cls, v: str) -> str:
        """Only image media types are accepted."""
        v = v.strip().lower()
        if not _is_image_type(v):
            raise ValueError(f"Unsupported file type '{v}': please upload an image")
        return v

    @classmethod
    def from_bytes(cls, data: bytes, mime_type: str | None = None, name: str | None = None) -> Self:
        """Build an asset from raw upload bytes.

        Args:
            data: Raw file content
            mime_type: Declared media type (guessed from ``name`` when omitted)
            name: Original file name

        Raises:
            AssetValidationError: If the type is missing or not an image
        """
        if mime_type is None and name:
            mime_type, _ = mimetypes.guess_type(name)
        if not mime_type:
            raise AssetValidationError(f"Cannot determine media type of {name or 'upload'}")
        if not _is_image_type(mime_type):
            raise AssetValidationError(
                f"Unsupported file type '{mime_type}': please upload an image"
            )
        if not data:
            raise AssetValidationError(f"{name or 'Upload'} is empty")
        return cls(data=data, mime_type=mime_type, name=name)

    @classmethod
    def from_path(cls, path: Path | str) -> Self:
        """Load an asset from a local file."""
        path = Path(path)
        if not path.is_file():
            raise AssetValidationError(f"File does not exist: {path}")
        return cls.from_bytes(path.read_bytes(), name=path.name)

    @classmethod
    def from_data_uri(cls, uri: str, name: str | None = None) -> Self:
        """Build an asset from a base64 data URI (e.g. a generated image)."""
        match = _DATA_URI.match(uri)
        if match is None or not match.group("b64"):
            raise AssetValidationError("Expected a base64 data URI")
        try:
            data = base64.b64decode(match.group("payload"), validate=True)
        except binascii.Error as e:
            raise AssetValidationError(f"Invalid base64 payload: {e}") from e
        return cls.from_bytes(data, mime_type=match.group("mime"), name=name)

    @property
    def base64(self) -> str:
        """Bare base64 payload (no data URI prefix)."""
        return base64.b64encode(self.data).decode("ascii")

    @property
    def data_uri(self) -> str:
        return to_data_uri(self.base64, self.mime_type)

    @property
    def preview(self) -> LocalResource:
        """Locally addressable preview handle, created on first access."""
        if self._discarded:
            raise ResourceReleasedError(f"Asset {self.name or 'upload'} was discarded")
        if self._preview is None:
            self._preview = LocalResource.from_bytes(self.data, self.mime_type, prefix="preview-")
        return self._preview

    @property
    def discarded(self) -> bool:
        return self._discarded

    def release_preview(self) -> None:
        """Discard the asset and release its preview handle (exactly once)."""
        if self._discarded:
            raise ResourceReleasedError(f"Asset {self.name or 'upload'} was already discarded")
        self._discarded = True
        if self._preview is not None:
            self._preview.release()


class AssetSlot:
    """Holds at most one asset, releasing the previous one on replacement.

    Args:
        label: Slot name shown to the user (e.g. "Character Image")
        required: Whether a request needs this slot filled
    """

    def __init__(self, label: str, *, required: bool = False) -> None:
        self.label = label
        self.required = required
        self._asset: ImageAsset | None = None

    @property
    def asset(self) -> ImageAsset | None:
        return self._asset

    def set(self, asset: ImageAsset) -> None:
        previous, self._asset = self._asset, asset
        if previous is not None and previous is not asset and not previous.discarded:
            previous.release_preview()

    def clear(self) -> None:
        previous, self._asset = self._asset, None
        if previous is not None and not previous.discarded:
            previous.release_preview()
