from __future__ import annotations

import logging
import time
from collections.abc import Mapping

from pydantic import BaseModel

logger = logging.getLogger("studioforge.core.api.http")

REDACTED = "***REDACTED***"


def redact_headers(headers: Mapping[str, str], redact: tuple[str, ...]) -> dict[str, str]:
    """Redact sensitive headers for logging.

    Args:
        headers: Headers to redact
        redact: Header names to redact (case-insensitive)

    Returns:
        Headers with sensitive values replaced with "***REDACTED***"
    """
    red = {v.lower() for v in redact}
    return {k: (REDACTED if k.lower() in red else v) for k, v in headers.items()}


class RequestLogContext(BaseModel):
    """Context for structured HTTP request logging.

    Args:
        method: HTTP method (GET, POST, etc.)
        url: Request URL without query string
        request_id: Request ID for tracing
    """

    method: str
    url: str
    request_id: str | None = None


def log_request(
    ctx: RequestLogContext, headers: Mapping[str, str], redact: tuple[str, ...]
) -> float:
    """Log HTTP request with redacted headers.

    Returns:
        Start timestamp for elapsed time calculation
    """
    start = time.perf_counter()
    logger.debug(
        "HTTP request",
        extra={
            "method": ctx.method,
            "url": ctx.url,
            "request_id": ctx.request_id,
            "headers": redact_headers(headers, redact),
        },
    )
    return start


def log_response(ctx: RequestLogContext, status_code: int, elapsed_s: float) -> None:
    """Log HTTP response with timing information."""
    logger.debug(
        "HTTP response",
        extra={
            "method": ctx.method,
            "url": ctx.url,
            "request_id": ctx.request_id,
            "status_code": status_code,
            "elapsed_ms": int(elapsed_s * 1000),
        },
    )
