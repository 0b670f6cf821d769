"""Submission services: score posting, the pending queue, and retries."""

from scorelink.services.submit.pipeline import (
    ScoreSubmitter,
    classify_response,
    score_post_path,
)
from scorelink.services.submit.queue_store import (
    MAX_FAILED_QUEUE_SIZE,
    FailedScoreQueue,
)
from scorelink.services.submit.retry import (
    INITIAL_BACKOFF_SECONDS,
    MAX_RETRY_TIME_SECONDS,
    RetryScheduler,
)

__all__ = [
    "FailedScoreQueue",
    "INITIAL_BACKOFF_SECONDS",
    "MAX_FAILED_QUEUE_SIZE",
    "MAX_RETRY_TIME_SECONDS",
    "RetryScheduler",
    "ScoreSubmitter",
    "classify_response",
    "score_post_path",
]
