"""LeaderboardSDK - one object wiring transport, queue, retries and queries.

Typical use:

    async with LeaderboardSDK(settings, session) as sdk:
        await sdk.submit_guest_score("main", 1200, nickname="ada")
        result = await sdk.get_scores("main", limit=10)
"""

import logging
import time
from collections.abc import Callable
from typing import Any

import httpx

from scorelink.models.score import ScoresResult, ScoreSubmission, SubmitResult
from scorelink.services.account import PlayerSession
from scorelink.services.config import LeaderboardSettings
from scorelink.services.leaderboard.client import ScoreQueryService, TimeFilter
from scorelink.services.submit import FailedScoreQueue, ScoreSubmitter
from scorelink.services.transport import LeaderboardTransport

_log = logging.getLogger(__name__)


class LeaderboardSDK:
    """Entry point for posting and querying scores."""

    def __init__(
        self,
        settings: LeaderboardSettings,
        session: PlayerSession,
        clock: Callable[[], float] = time.time,
        http_transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings
        self._transport = LeaderboardTransport(
            settings.base_url,
            api_token=settings.api_token,
            timeout=settings.request_timeout,
            transport=http_transport,
        )
        self._queue = FailedScoreQueue(
            settings.queue_path, max_size=settings.max_failed_queue_size
        )
        self._submitter = ScoreSubmitter(
            self._transport,
            session,
            self._queue,
            clock=clock,
            initial_backoff=settings.initial_backoff,
            max_backoff=settings.max_backoff,
        )
        self._queries = ScoreQueryService(self._transport, session)
        self._started = False

    async def __aenter__(self) -> "LeaderboardSDK":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    @property
    def submitter(self) -> ScoreSubmitter:
        return self._submitter

    @property
    def queries(self) -> ScoreQueryService:
        return self._queries

    @property
    def pending_submissions(self) -> list[ScoreSubmission]:
        return self._queue.snapshot()

    @property
    def pending_count(self) -> int:
        return len(self._queue)

    async def start(self, retry_pending: bool = True) -> None:
        """Restore scores left over from a previous run and start retrying them."""
        if self._started:
            return
        self._started = True
        if not self._settings.api_token:
            _log.warning(
                "No API token configured (SCORELINK_API_TOKEN); "
                "the leaderboard service may reject requests"
            )
        if self._queue.load_from_disk() and retry_pending:
            await self._submitter.scheduler.kick_if_idle()

    async def aclose(self) -> None:
        """Stop the retry timer and close the HTTP client.

        Pending scores stay on disk for the next run.
        """
        self._submitter.scheduler.cancel()
        await self._transport.aclose()

    async def submit_guest_score(
        self,
        leaderboard_id: str,
        score: float,
        nickname: str = "",
        metadata: dict[str, Any] | None = None,
        timestamp: float = 0.0,
        auto_retry: bool = True,
    ) -> bool:
        return await self._submitter.submit_guest_score(
            leaderboard_id, score, nickname, metadata, timestamp, auto_retry
        )

    async def submit_guest_score_result(
        self,
        leaderboard_id: str,
        score: float,
        nickname: str = "",
        metadata: dict[str, Any] | None = None,
        timestamp: float = 0.0,
        auto_retry: bool = True,
    ) -> SubmitResult:
        return await self._submitter.submit_guest_score_result(
            leaderboard_id, score, nickname, metadata, timestamp, auto_retry
        )

    async def flush_pending(self) -> int:
        """Retry pending scores now until the queue is empty or a retry fails.

        Returns the number of scores delivered.
        """
        return await self._submitter.scheduler.drain()

    async def get_scores(
        self,
        leaderboard_id: str,
        offset: int = 0,
        limit: int = 10,
        start_time: TimeFilter = None,
        end_time: TimeFilter = None,
    ) -> ScoresResult:
        return await self._queries.get_scores(
            leaderboard_id, offset, limit, start_time, end_time
        )

    async def get_player_scores(
        self,
        leaderboard_id: str,
        offset: int = 0,
        limit: int = 10,
        start_time: TimeFilter = None,
        end_time: TimeFilter = None,
    ) -> ScoresResult:
        return await self._queries.get_player_scores(
            leaderboard_id, offset, limit, start_time, end_time
        )

    async def get_scores_with_player(
        self,
        leaderboard_id: str,
        offset: int = 0,
        limit: int = 10,
        start_time: TimeFilter = None,
        end_time: TimeFilter = None,
    ) -> ScoresResult:
        return await self._queries.get_scores_with_player(
            leaderboard_id, offset, limit, start_time, end_time
        )

    async def get_nearby_scores(
        self,
        leaderboard_id: str,
        nearby_count: int = 5,
        anchor: str | None = None,
        start_time: TimeFilter = None,
        end_time: TimeFilter = None,
    ) -> ScoresResult:
        return await self._queries.get_nearby_scores(
            leaderboard_id, nearby_count, anchor, start_time, end_time
        )
