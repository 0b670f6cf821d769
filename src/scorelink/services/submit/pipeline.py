"""Score submission pipeline.

Posts a score for the current player, registering a guest first if
needed. Posts that fail for transient reasons (network errors, 5xx,
failed guest registration) are queued on disk and retried in the
background; 4xx rejections and invalid input are never retried.

Only one post is in flight at a time. A post attempted while another is
in flight fails with SubmitOutcome.BUSY and is not queued.
"""

import json
import logging
import math
import time
from collections.abc import Callable
from typing import Any
from urllib.parse import quote

from scorelink.models.score import (
    MAX_NICKNAME_LENGTH,
    ScoreSubmission,
    SubmitOutcome,
    SubmitResult,
)
from scorelink.services.account import PlayerSession
from scorelink.services.submit.queue_store import FailedScoreQueue
from scorelink.services.submit.retry import (
    INITIAL_BACKOFF_SECONDS,
    MAX_RETRY_TIME_SECONDS,
    RetryScheduler,
)
from scorelink.services.transport import HttpResponse, LeaderboardTransport, TransportError

_log = logging.getLogger(__name__)


def score_post_path(leaderboard_id: str) -> str:
    return f"/leaderboards/{quote(leaderboard_id, safe='')}/scores/post/"


def classify_response(response: HttpResponse) -> SubmitResult:
    """Map an HTTP status to a submit outcome."""
    status = response.status_code
    if 200 <= status < 300:
        return SubmitResult(SubmitOutcome.SUCCESS, status_code=status)
    if 400 <= status < 500:
        return SubmitResult(
            SubmitOutcome.PERMANENT_REJECT,
            status_code=status,
            error=f"Score rejected ({status}): {response.error_message()}",
        )
    return SubmitResult(
        SubmitOutcome.TRANSIENT_SERVER,
        status_code=status,
        error=f"Server error ({status}): {response.error_message()}",
    )


def _validate(leaderboard_id: str, score: float, nickname: str, metadata: dict) -> str | None:
    """Return an error message for unusable input, or None."""
    if not leaderboard_id:
        return "Leaderboard id is required"
    if len(nickname) > MAX_NICKNAME_LENGTH:
        return f"Nickname must be at most {MAX_NICKNAME_LENGTH} characters, got {len(nickname)}"
    if not math.isfinite(score):
        return f"Score must be a finite number, got {score}"
    try:
        json.dumps(metadata, allow_nan=False)
    except (TypeError, ValueError) as e:
        return f"Metadata is not JSON serializable: {e}"
    return None


class ScoreSubmitter:
    """Posts scores and queues transient failures for retry."""

    def __init__(
        self,
        transport: LeaderboardTransport,
        session: PlayerSession,
        queue: FailedScoreQueue,
        clock: Callable[[], float] = time.time,
        initial_backoff: float = INITIAL_BACKOFF_SECONDS,
        max_backoff: float = MAX_RETRY_TIME_SECONDS,
    ) -> None:
        self._transport = transport
        self._session = session
        self._queue = queue
        self._clock = clock
        self._in_flight = False
        self.scheduler = RetryScheduler(
            queue,
            self.post_submission,
            initial_backoff=initial_backoff,
            max_backoff=max_backoff,
        )

    @property
    def queue(self) -> FailedScoreQueue:
        return self._queue

    @property
    def busy(self) -> bool:
        """True while a score post is awaiting its response."""
        return self._in_flight

    async def submit_guest_score(
        self,
        leaderboard_id: str,
        score: float,
        nickname: str = "",
        metadata: dict[str, Any] | None = None,
        timestamp: float = 0.0,
        auto_retry: bool = True,
    ) -> bool:
        """Post a score. Returns whether this attempt was accepted.

        A transient failure with auto_retry still returns False; the score
        is delivered later in the background.
        """
        result = await self.submit_guest_score_result(
            leaderboard_id,
            score,
            nickname=nickname,
            metadata=metadata,
            timestamp=timestamp,
            auto_retry=auto_retry,
        )
        return result.ok

    async def submit_guest_score_result(
        self,
        leaderboard_id: str,
        score: float,
        nickname: str = "",
        metadata: dict[str, Any] | None = None,
        timestamp: float = 0.0,
        auto_retry: bool = True,
    ) -> SubmitResult:
        """Same as submit_guest_score() but returns the full SubmitResult."""
        metadata = metadata if metadata is not None else {}
        error = _validate(leaderboard_id, score, nickname, metadata)
        if error:
            _log.error("Not posting score: %s", error)
            return SubmitResult(SubmitOutcome.INVALID_INPUT, error=error)

        if timestamp == 0.0:
            timestamp = self._clock()
        submission = ScoreSubmission.create(
            leaderboard_id, score, nickname, metadata, timestamp
        )

        result = await self.post_submission(submission)
        if result.ok or not result.outcome.retryable or not auto_retry:
            return result

        _log.info("Queueing score %s for %s to retry later", score, leaderboard_id)
        self._queue.enqueue(submission)
        await self.scheduler.kick_if_idle()
        return result

    async def post_submission(self, submission: ScoreSubmission) -> SubmitResult:
        """Send an already built submission once. Never queues it."""
        if not self._session.is_logged_in():
            registered = await self._session.register_guest()
            if not registered:
                _log.warning("Guest registration failed, cannot post score")
                return SubmitResult(
                    SubmitOutcome.AUTH_FAILURE, error="Guest registration failed"
                )

        if self._in_flight:
            _log.warning("A score post is already in flight, try again later")
            return SubmitResult(
                SubmitOutcome.BUSY, error="Another score post is in flight"
            )

        self._in_flight = True
        try:
            response = await self._transport.post(
                score_post_path(submission.leaderboard_id),
                token=self._session.token,
                json=submission.to_payload(),
            )
        except TransportError as e:
            _log.warning("Score post failed: %s", e)
            return SubmitResult(SubmitOutcome.TRANSIENT_SERVER, error=str(e))
        finally:
            self._in_flight = False

        result = classify_response(response)
        if not result.ok:
            _log.warning("Score post failed: %s", result.error)
        return result
