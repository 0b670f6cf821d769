"""Retry scheduler for queued score submissions.

One timer at most is pending at any time. Each fire retries exactly one
submission: the queue drains one item per fire, never in a burst.

Backoff starts at 2s, doubles after each failed retry up to 60s, and
resets after a successful delivery.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable

from scorelink.models.score import ScoreSubmission, SubmitOutcome, SubmitResult
from scorelink.services.submit.queue_store import FailedScoreQueue

_log = logging.getLogger(__name__)

INITIAL_BACKOFF_SECONDS = 2.0
MAX_RETRY_TIME_SECONDS = 60.0

RetryFn = Callable[[ScoreSubmission], Awaitable[SubmitResult]]

# A queued post that fails with these can never succeed.
_DROP_OUTCOMES = (SubmitOutcome.PERMANENT_REJECT, SubmitOutcome.INVALID_INPUT)


class RetryScheduler:
    """Drives retries of the failed score queue with exponential backoff."""

    def __init__(
        self,
        queue: FailedScoreQueue,
        retry: RetryFn,
        initial_backoff: float = INITIAL_BACKOFF_SECONDS,
        max_backoff: float = MAX_RETRY_TIME_SECONDS,
    ) -> None:
        self._queue = queue
        self._retry = retry
        self._initial_backoff = initial_backoff
        self._max_backoff = max_backoff
        self._backoff = initial_backoff
        self._timer: asyncio.Task[None] | None = None
        self._retrying = False

    @property
    def current_backoff(self) -> float:
        return self._backoff

    @property
    def armed(self) -> bool:
        return self._timer is not None and not self._timer.done()

    def arm(self, delay: float) -> None:
        """Schedule one retry after `delay` seconds, replacing any pending one."""
        self.cancel()
        self._timer = asyncio.get_running_loop().create_task(self._fire_after(delay))

    def cancel(self) -> None:
        """Disarm the timer if it is pending."""
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = None

    async def kick_if_idle(self) -> None:
        """Retry once right away unless a retry is already scheduled or running."""
        if self.armed or self._retrying or self._queue.is_empty():
            return
        await self.retry_next()

    async def retry_next(self) -> SubmitResult | None:
        """Retry the next queued submission once and reschedule.

        Returns the attempt's result, or None if the queue was empty.
        """
        submission = self._queue.peek_next()
        if submission is None:
            self._reset()
            return None

        self._retrying = True
        try:
            result = await self._retry(submission)
        finally:
            self._retrying = False

        if result.ok:
            _log.info(
                "Delivered queued score %s for %s", submission.score, submission.leaderboard_id
            )
            self._queue.remove(submission)
            self._backoff = self._initial_backoff
            self._continue_or_reset()
        elif result.outcome in _DROP_OUTCOMES:
            _log.warning(
                "Dropping queued score %s for %s: %s",
                submission.score,
                submission.leaderboard_id,
                result.error or result.outcome.value,
            )
            self._queue.remove(submission)
            self._continue_or_reset()
        elif result.outcome is SubmitOutcome.BUSY:
            # Another post holds the connection; try again without growing the delay.
            self.arm(self._backoff)
        else:
            self._backoff = min(self._backoff * 2, self._max_backoff)
            _log.info(
                "Retry of queued score failed (%s), next attempt in %.0fs",
                result.error or result.outcome.value,
                self._backoff,
            )
            self.arm(self._backoff)
        return result

    async def drain(self) -> int:
        """Retry queued submissions back to back until empty or a retry fails.

        Returns the number of submissions delivered.
        """
        delivered = 0
        self.cancel()
        while not self._queue.is_empty():
            result = await self.retry_next()
            if result is None:
                break
            if result.ok:
                delivered += 1
            elif result.outcome not in _DROP_OUTCOMES:
                break
            self.cancel()
        return delivered

    def _continue_or_reset(self) -> None:
        if self._queue.is_empty():
            self._reset()
        else:
            self.arm(self._backoff)

    def _reset(self) -> None:
        self.cancel()
        self._backoff = self._initial_backoff

    async def _fire_after(self, delay: float) -> None:
        await asyncio.sleep(delay)
        # Clear before retrying so retry_next() can re-arm without cancelling itself.
        self._timer = None
        try:
            await self.retry_next()
        except Exception:
            _log.exception("Queued score retry crashed")
