"""Retry with exponential backoff for rate-limited generation calls.

Only transient failures (rate limit, quota, overload) are retried. Any
other failure is re-raised untouched on the first occurrence, and a
transient failure that survives the whole retry budget is replaced by a
single ``ServiceBusyError`` so callers get one actionable message.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from pydantic import BaseModel, Field, field_validator

from studioforge.core.api.http.errors import ApiError
from studioforge.core.studio.errors import ServiceBusyError

logger = logging.getLogger(__name__)

T = TypeVar("T")

SleepFn = Callable[[float], Awaitable[None]]

TRANSIENT_STATUS_CODES = frozenset({429, 503})
TRANSIENT_STATUS_TOKENS = frozenset({"RESOURCE_EXHAUSTED", "UNAVAILABLE"})
TRANSIENT_MESSAGE_MARKERS = ("429", "503", "Quota exceeded", "busy", "RESOURCE_EXHAUSTED")


class RetryPolicy(BaseModel):
    """Backoff policy for one kind of remote operation.

    Args:
        max_attempts: Total invocations allowed, including the first
        initial_delay_s: Wait before the first retry
        backoff_multiplier: Factor applied to the wait after every retry
        max_delay_s: Ceiling for a single wait
    """

    model_config = {"frozen": True}

    max_attempts: int = Field(default=3, ge=1)
    initial_delay_s: float = Field(default=2.0, ge=0.0)
    backoff_multiplier: float = Field(default=1.5, ge=1.0)
    max_delay_s: float = Field(default=60.0, ge=0.0)

    @field_validator("max_delay_s")
    @classmethod
    def validate_max_delay(cls, v: float, info) -> float:
        """Ensure max_delay_s >= initial_delay_s."""
        initial = info.data.get("initial_delay_s", 0.0)
        if v < initial:
            raise ValueError("max_delay_s must be >= initial_delay_s")
        return v

    async def run(
        self,
        operation: Callable[[], Awaitable[T]],
        *,
        sleep: SleepFn = asyncio.sleep,
        label: str = "remote call",
    ) -> T:
        """Execute ``operation`` under this policy."""
        return await execute_with_retry(
            operation,
            max_attempts=self.max_attempts,
            initial_delay_s=self.initial_delay_s,
            backoff_multiplier=self.backoff_multiplier,
            max_delay_s=self.max_delay_s,
            sleep=sleep,
            label=label,
        )


# Default policies per operation kind
IMAGE_RETRY_POLICY = RetryPolicy(max_attempts=3, initial_delay_s=2.0)
VIDEO_SUBMIT_RETRY_POLICY = RetryPolicy(max_attempts=5, initial_delay_s=20.0, max_delay_s=120.0)


def _error_text(exc: BaseException) -> str:
    if isinstance(exc, ApiError):
        # The URL may contain digits; only the messages are meaningful here.
        return " ".join(filter(None, (exc.message, exc.service_message)))
    return str(exc)


def is_transient_error(exc: BaseException) -> bool:
    """Classify a failure as transient (rate limit, quota, overload).

    Checks, in order: HTTP status code, service status token, and
    well-known substrings of the error message.

    Args:
        exc: Raised exception

    Returns:
        True if the failure is worth retrying
    """
    for attr in ("status_code", "status", "code"):
        value = getattr(exc, attr, None)
        if isinstance(value, int) and value in TRANSIENT_STATUS_CODES:
            return True
        if isinstance(value, str) and value in TRANSIENT_STATUS_TOKENS:
            return True

    token = getattr(exc, "error_status", None)
    if isinstance(token, str) and token in TRANSIENT_STATUS_TOKENS:
        return True

    text = _error_text(exc)
    return any(marker in text for marker in TRANSIENT_MESSAGE_MARKERS)


async def execute_with_retry(
    operation: Callable[[], Awaitable[T]],
    max_attempts: int = 3,
    initial_delay_s: float = 2.0,
    *,
    backoff_multiplier: float = 1.5,
    max_delay_s: float | None = 60.0,
    sleep: SleepFn = asyncio.sleep,
    label: str = "remote call",
) -> T:
    """Invoke ``operation`` and retry transient failures with backoff.

    Args:
        operation: Zero-argument coroutine factory; called once per attempt
        max_attempts: Total invocations allowed (>= 1)
        initial_delay_s: Wait before the first retry
        backoff_multiplier: Growth factor for the wait
        max_delay_s: Ceiling for a single wait (None disables the ceiling)
        sleep: Awaitable sleep function (injectable for tests)
        label: Operation name used in log messages

    Returns:
        The operation's result

    Raises:
        ServiceBusyError: A transient failure persisted through every attempt
        Exception: Any non-transient failure, re-raised unchanged
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be >= 1")

    delay = initial_delay_s
    attempt = 0
    while True:
        attempt += 1
        try:
            return await operation()
        except Exception as e:
            if not is_transient_error(e):
                raise
            if attempt >= max_attempts:
                logger.error(
                    "%s still rate limited after %d attempt(s); giving up", label, attempt
                )
                raise ServiceBusyError() from e

            wait_s = delay if max_delay_s is None else min(delay, max_delay_s)
            logger.warning(
                "%s hit quota/server limit. Retrying in %.1fs (attempt %d/%d)",
                label,
                wait_s,
                attempt,
                max_attempts,
            )
            await sleep(wait_s)
            delay *= backoff_multiplier
