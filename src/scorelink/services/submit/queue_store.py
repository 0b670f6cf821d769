"""Durable store for score posts awaiting retry.

Pending submissions are kept in memory and mirrored to a newline-delimited
JSON log, one submission per line:

    {"leaderboard_id": "main", "score": 120.0, "nickname": "ada", ...}
    {"leaderboard_id": "main", "score": 95.5, "nickname": "bob", ...}

New entries are appended. The file is rewritten in full only after an
eviction, and deleted as soon as the queue drains. Disk errors are logged
and never raised: durability is best-effort.

Retries take the element at the tail of the queue first.
"""

import json
import logging
from pathlib import Path

from scorelink.models.score import ScoreSubmission

_log = logging.getLogger(__name__)

MAX_FAILED_QUEUE_SIZE = 20


def eviction_order(submission: ScoreSubmission) -> tuple[float, float]:
    """Sort key: score ascending, then timestamp descending."""
    return (submission.score, -submission.timestamp)


class FailedScoreQueue:
    """Bounded, disk-backed queue of failed score submissions."""

    def __init__(self, path: Path, max_size: int = MAX_FAILED_QUEUE_SIZE) -> None:
        self._path = path
        self._max_size = max_size
        self._items: list[ScoreSubmission] = []

    @property
    def path(self) -> Path:
        """Return the log file path."""
        return self._path

    def __len__(self) -> int:
        return len(self._items)

    def size(self) -> int:
        return len(self._items)

    def is_empty(self) -> bool:
        return not self._items

    def snapshot(self) -> list[ScoreSubmission]:
        """Copy of the queue in stored order (next to retry is last)."""
        return list(self._items)

    def peek_next(self) -> ScoreSubmission | None:
        """Return the submission to retry next, or None if empty."""
        return self._items[-1] if self._items else None

    def enqueue(self, submission: ScoreSubmission) -> None:
        """Add a submission, evicting the worst score if over capacity."""
        self._items.append(submission)
        if len(self._items) > self._max_size:
            self._evict_worst()
            self._rewrite()
        else:
            self._append_line(submission)

    def remove(self, submission: ScoreSubmission) -> None:
        """Pop a delivered submission from the tail.

        The log is not touched until the queue empties, so a restart may
        replay it once more. If the queue was reordered by an eviction
        while the retry was in flight, the submission is removed from
        wherever it now sits and the log rewritten.
        """
        if self._items and self._items[-1] == submission:
            self._items.pop()
        elif submission in self._items:
            self._items.remove(submission)
            self._rewrite()
        else:
            return
        if not self._items:
            self._delete_file()

    def clear(self) -> None:
        """Drop every pending submission and delete the log."""
        self._items.clear()
        self._delete_file()

    def load_from_disk(self) -> int:
        """Replace the in-memory queue with the log contents.

        Corrupt lines are skipped. Returns the number of submissions loaded.
        """
        self._items = []
        if not self._path.exists():
            return 0

        try:
            lines = self._path.read_text(encoding="utf-8").splitlines()
        except OSError as e:
            _log.error("Could not read pending scores from %s: %s", self._path, e)
            return 0

        skipped = False
        for line_no, line in enumerate(lines, start=1):
            if not line.strip():
                continue
            try:
                data = json.loads(line)
                if not isinstance(data, dict):
                    raise TypeError("record is not an object")
                self._items.append(ScoreSubmission.from_dict(data))
            except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
                _log.warning(
                    "Skipping corrupt pending score at %s:%d: %s", self._path, line_no, e
                )
                skipped = True

        oversized = len(self._items) > self._max_size
        while len(self._items) > self._max_size:
            self._evict_worst()
        if not self._items:
            self._delete_file()
        elif skipped or oversized:
            self._rewrite()

        _log.info("Loaded %d pending score(s) from %s", len(self._items), self._path)
        return len(self._items)

    def _evict_worst(self) -> None:
        ranked = sorted(self._items, key=eviction_order)
        dropped = ranked.pop(0)
        self._items = ranked
        _log.warning(
            "Pending score queue full (%d), dropping score %s for %s",
            self._max_size,
            dropped.score,
            dropped.leaderboard_id,
        )

    def _append_line(self, submission: ScoreSubmission) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with self._path.open("a", encoding="utf-8") as f:
                f.write(_encode(submission))
                f.flush()
        except OSError as e:
            _log.error("Could not persist pending score to %s: %s", self._path, e)

    def _rewrite(self) -> None:
        """Write the whole queue atomically."""
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self._path.with_suffix(self._path.suffix + ".tmp")
            tmp.write_text("".join(_encode(s) for s in self._items), encoding="utf-8")
            tmp.replace(self._path)
        except OSError as e:
            _log.error("Could not rewrite pending scores at %s: %s", self._path, e)

    def _delete_file(self) -> None:
        try:
            self._path.unlink(missing_ok=True)
        except OSError as e:
            _log.error("Could not delete %s: %s", self._path, e)


def _encode(submission: ScoreSubmission) -> str:
    return json.dumps(submission.to_dict(), ensure_ascii=True, separators=(",", ":")) + "\n"
