"""Error hierarchy for studio operations.

Permanent service failures are not wrapped: they surface as the HTTP
layer's ``ApiError`` subclasses so callers see the service's own message.
Everything raised by the studio itself derives from ``StudioError``.
"""

from __future__ import annotations

from studioforge.core.api.http.errors import ApiError, AuthError

SERVICE_BUSY_MESSAGE = (
    "Server is currently busy or daily quota reached. Please try again in a few minutes."
)

# Service messages that mean the key itself is bad or was revoked
_CREDENTIAL_MARKERS = (
    "API key not valid",
    "API_KEY_INVALID",
    "Requested entity was not found",
    "PERMISSION_DENIED",
)


class StudioError(RuntimeError):
    """Base class for studio failures."""


class RequestValidationError(StudioError, ValueError):
    """A required request field is missing or blank."""


class AssetValidationError(StudioError, ValueError):
    """An uploaded file cannot be used as an image asset."""


class CredentialError(RequestValidationError):
    """No usable credential is available."""


class ServiceBusyError(StudioError):
    """Transient service failures persisted past the retry budget."""

    def __init__(self, message: str = SERVICE_BUSY_MESSAGE) -> None:
        super().__init__(message)


class NoImageReturnedError(StudioError):
    """The service answered but no inline image was present."""


class OperationFailedError(StudioError):
    """A long-running operation finished with an error payload."""


class EmptyResultError(StudioError):
    """A long-running operation finished without a result reference."""


class VideoDownloadError(StudioError):
    """Fetching a generated video failed."""


class ResourceReleasedError(StudioError):
    """A local resource handle was used or released after release."""


def is_credential_error(exc: BaseException) -> bool:
    """Whether the failure means the caller should re-enter the credential.

    Args:
        exc: Raised exception

    Returns:
        True for 401/403 responses, credential errors, and service messages
        that report an invalid or unknown key
    """
    if isinstance(exc, (AuthError, CredentialError)):
        return True
    if isinstance(exc, ApiError):
        text = f"{exc.message} {exc.service_message or ''} {exc.error_status or ''}"
    else:
        text = str(exc)
    return any(marker in text for marker in _CREDENTIAL_MARKERS)
