"""Data models for score submissions and leaderboard queries."""

from scorelink.models.score import (
    MAX_NICKNAME_LENGTH,
    ScoreRecord,
    ScoresResult,
    ScoreSubmission,
    SubmitOutcome,
    SubmitResult,
    compute_checksum,
)

__all__ = [
    "MAX_NICKNAME_LENGTH",
    "ScoreRecord",
    "ScoreSubmission",
    "ScoresResult",
    "SubmitOutcome",
    "SubmitResult",
    "compute_checksum",
]
