"""Score models for leaderboard submissions and queries.

A ScoreSubmission is a single score post. Submissions that fail with a
transient error are persisted to disk and survive app restarts.
"""

import hashlib
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

MAX_NICKNAME_LENGTH = 15


def compute_checksum(score: float, timestamp: float) -> str:
    """Tag a score with sha256(int(score) + int(timestamp)).

    This is what the service checks on receipt. It is an anti-tamper
    tag, not an integrity guarantee.
    """
    total = int(score) + int(timestamp)
    return hashlib.sha256(str(total).encode("utf-8")).hexdigest()


class SubmitOutcome(Enum):
    """Outcome of a single score post attempt."""

    SUCCESS = "success"
    INVALID_INPUT = "invalid_input"
    BUSY = "busy"
    AUTH_FAILURE = "auth_failure"
    TRANSIENT_SERVER = "transient_server"
    PERMANENT_REJECT = "permanent_reject"

    @property
    def retryable(self) -> bool:
        """Whether the failed post may be queued and replayed later."""
        return self in (SubmitOutcome.AUTH_FAILURE, SubmitOutcome.TRANSIENT_SERVER)


@dataclass(frozen=True)
class ScoreSubmission:
    """A score post, exactly as sent to the service.

    Attributes:
        leaderboard_id: Leaderboard internal name (e.g., "main")
        score: The score value
        nickname: Display name, at most 15 characters
        metadata: Free-form JSON values attached to the score
        timestamp: Unix seconds when the score was achieved
        checksum: Anti-tamper tag, see compute_checksum()

    Hashable; metadata is compared for equality but left out of the hash.
    """

    leaderboard_id: str
    score: float
    nickname: str = ""
    metadata: dict[str, Any] = field(default_factory=dict, hash=False)
    timestamp: float = 0.0
    checksum: str = ""

    @classmethod
    def create(
        cls,
        leaderboard_id: str,
        score: float,
        nickname: str,
        metadata: dict[str, Any],
        timestamp: float,
    ) -> "ScoreSubmission":
        """Build a submission with its checksum filled in."""
        return cls(
            leaderboard_id=leaderboard_id,
            score=float(score),
            nickname=nickname,
            metadata=dict(metadata),
            timestamp=float(timestamp),
            checksum=compute_checksum(score, timestamp),
        )

    def to_payload(self) -> dict[str, Any]:
        """Request body for the score post endpoint."""
        return {
            "score": self.score,
            "nickname": self.nickname,
            "timestamp": self.timestamp,
            "metadata": self.metadata,
            "checksum": self.checksum,
        }

    def to_dict(self) -> dict[str, Any]:
        """Serialize for the on-disk retry log."""
        return {"leaderboard_id": self.leaderboard_id, **self.to_payload()}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ScoreSubmission":
        """Deserialize a retry log record.

        Raises:
            KeyError: If a required field is missing
            TypeError, ValueError: If a field has the wrong type
        """
        metadata = data.get("metadata") or {}
        if not isinstance(metadata, dict):
            raise TypeError(f"metadata must be an object, got {type(metadata).__name__}")
        return cls(
            leaderboard_id=str(data["leaderboard_id"]),
            score=float(data["score"]),
            nickname=str(data.get("nickname", "")),
            metadata=metadata,
            timestamp=float(data["timestamp"]),
            checksum=str(data.get("checksum", "")),
        )


@dataclass(frozen=True)
class SubmitResult:
    """Result of a score post attempt."""

    outcome: SubmitOutcome
    status_code: int | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.outcome is SubmitOutcome.SUCCESS


@dataclass(frozen=True)
class ScoreRecord:
    """A single ranked score returned by a leaderboard query."""

    name: str
    score: float
    rank: int
    timestamp: float = 0.0
    metadata: dict[str, Any] = field(default_factory=dict)
    is_current_player: bool = False


@dataclass(frozen=True)
class ScoresResult:
    """Result of a leaderboard query. Check `error` before using `scores`."""

    scores: list[ScoreRecord] = field(default_factory=list)
    has_more_scores: bool = False
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None
