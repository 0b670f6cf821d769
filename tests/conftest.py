"""Shared test fixtures for scorelink tests."""

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import httpx
import pytest

from scorelink.models.score import ScoreSubmission
from scorelink.services.submit import FailedScoreQueue, ScoreSubmitter
from scorelink.services.transport import LeaderboardTransport

BASE_URL = "https://lb.test/v1"
FIXED_NOW = 1_700_000_000.0


class FakeSession:
    """PlayerSession stand-in with a controllable login state."""

    def __init__(
        self, token: str = "player-token", logged_in: bool = True, register_ok: bool = True
    ) -> None:
        self._token = token
        self.logged_in = logged_in
        self.register_ok = register_ok
        self.register_calls = 0

    @property
    def token(self) -> str:
        return self._token if self.logged_in else ""

    def is_logged_in(self) -> bool:
        return self.logged_in

    async def register_guest(self) -> bool:
        self.register_calls += 1
        if self.register_ok:
            self.logged_in = True
        return self.register_ok


class ScriptedServer:
    """httpx.MockTransport handler answering from a list of statuses.

    The last status repeats once the list is exhausted. An exception in
    the list is raised instead of answering.
    """

    def __init__(self, statuses: list[int | Exception] | None = None, body: Any = None) -> None:
        self.statuses: list[int | Exception] = statuses or [200]
        self.body = body if body is not None else {}
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        status = self.statuses.pop(0) if len(self.statuses) > 1 else self.statuses[0]
        if isinstance(status, Exception):
            raise status
        if isinstance(self.body, str):
            return httpx.Response(status, text=self.body)
        return httpx.Response(status, json=self.body)

    def json_bodies(self) -> list[dict]:
        return [json.loads(r.content) for r in self.requests if r.content]


def _make_submission(
    score: float = 100.0,
    timestamp: float = FIXED_NOW,
    leaderboard_id: str = "main",
    nickname: str = "ada",
    metadata: dict[str, Any] | None = None,
) -> ScoreSubmission:
    return ScoreSubmission.create(leaderboard_id, score, nickname, metadata or {}, timestamp)


def _read_log(path: Path) -> list[dict]:
    return [json.loads(line) for line in path.read_text().splitlines() if line.strip()]


@pytest.fixture
def make_submission() -> Callable[..., ScoreSubmission]:
    """Factory for submissions with sensible defaults."""
    return _make_submission


@pytest.fixture
def read_log() -> Callable[[Path], list[dict]]:
    """Parse the pending score log into a list of records."""
    return _read_log


@pytest.fixture
def server() -> ScriptedServer:
    return ScriptedServer()


@pytest.fixture
def make_transport() -> Callable[[Callable], LeaderboardTransport]:
    """Build a LeaderboardTransport around any MockTransport handler."""

    def build(handler: Callable) -> LeaderboardTransport:
        return LeaderboardTransport(
            BASE_URL, api_token="service-token", transport=httpx.MockTransport(handler)
        )

    return build


@pytest.fixture
def transport(server: ScriptedServer, make_transport) -> LeaderboardTransport:
    return make_transport(server)


@pytest.fixture
def session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def make_session() -> Callable[..., FakeSession]:
    return FakeSession


@pytest.fixture
def queue_path(tmp_path: Path) -> Path:
    return tmp_path / "scorelink" / "failed_scores.jsonl"


@pytest.fixture
def queue(queue_path: Path) -> FailedScoreQueue:
    return FailedScoreQueue(queue_path)


@pytest.fixture
def submitter(
    transport: LeaderboardTransport, session: FakeSession, queue: FailedScoreQueue
) -> ScoreSubmitter:
    return ScoreSubmitter(transport, session, queue, clock=lambda: FIXED_NOW)
