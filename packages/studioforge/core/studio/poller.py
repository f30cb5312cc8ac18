"""Long-running video operation polling.

Submission goes through the retry executor; status polling then runs
until the operation reports done. A rate-limited status call never ends
the job: the poller backs off and asks again for as long as it takes.
Stopping a poll means cancelling the task that awaits ``run``.
"""

from __future__ import annotations

import asyncio
import logging

from studioforge.core.api.gemini.client import GeminiClient
from studioforge.core.api.gemini.models import Operation
from studioforge.core.studio.errors import EmptyResultError, OperationFailedError
from studioforge.core.studio.requests import VideoJobPayload
from studioforge.core.studio.retry import (
    VIDEO_SUBMIT_RETRY_POLICY,
    RetryPolicy,
    SleepFn,
    is_transient_error,
)

logger = logging.getLogger(__name__)

EMPTY_RESULT_MESSAGE = "Video generation completed but produced no result."


class OperationPoller:
    """Submits a video job and waits for its terminal state.

    Args:
        client: Gemini client used for submission and status calls
        submit_policy: Retry policy for the initial submission
        poll_interval_s: Wait before each status call
        transient_backoff_s: Extra wait after a rate-limited status call
        sleep: Awaitable sleep function (injectable for tests)
    """

    def __init__(
        self,
        client: GeminiClient,
        submit_policy: RetryPolicy = VIDEO_SUBMIT_RETRY_POLICY,
        *,
        poll_interval_s: float = 5.0,
        transient_backoff_s: float = 15.0,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        self.client = client
        self.submit_policy = submit_policy
        self.poll_interval_s = poll_interval_s
        self.transient_backoff_s = transient_backoff_s
        self._sleep = sleep

    async def submit(self, payload: VideoJobPayload, credential: str) -> Operation:
        """Start the job, retrying transient rejections."""
        body = payload.to_body()
        return await self.submit_policy.run(
            lambda: self.client.submit_video(payload.model, body, credential=credential),
            sleep=self._sleep,
            label="Video submission",
        )

    async def _refresh(self, operation: Operation, credential: str) -> Operation:
        while True:
            try:
                return await self.client.get_operation(operation.name, credential=credential)
            except Exception as e:
                if not is_transient_error(e):
                    raise
                logger.warning(
                    "Polling rate limited for %s; backing off %.1fs",
                    operation.name,
                    self.transient_backoff_s,
                )
                await self._sleep(self.transient_backoff_s)

    async def wait(self, operation: Operation, credential: str) -> Operation:
        """Poll ``operation`` until done and validate its terminal state.

        Raises:
            OperationFailedError: The operation finished with an error payload
            EmptyResultError: The operation finished without a video reference
        """
        polls = 0
        while not operation.done:
            await self._sleep(self.poll_interval_s)
            operation = await self._refresh(operation, credential)
            polls += 1
            logger.debug(
                "Operation %s done=%s after %d poll(s)", operation.name, operation.done, polls
            )

        if operation.error is not None:
            raise OperationFailedError(operation.error.message)
        if operation.video_uri() is None:
            reasons = operation.filtered_reasons()
            if reasons:
                logger.warning("Operation %s filtered: %s", operation.name, "; ".join(reasons))
                raise EmptyResultError(f"{EMPTY_RESULT_MESSAGE} {' '.join(reasons)}")
            raise EmptyResultError(EMPTY_RESULT_MESSAGE)

        logger.info("Operation %s finished after %d poll(s)", operation.name, polls)
        return operation

    async def run(self, payload: VideoJobPayload, credential: str) -> Operation:
        """Submit ``payload`` and return the finished operation."""
        operation = await self.submit(payload, credential)
        return await self.wait(operation, credential)
