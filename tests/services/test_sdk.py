"""Tests for the LeaderboardSDK facade: restart recovery and wiring."""

import logging
from pathlib import Path

import httpx
import pytest

from scorelink.services.config import LeaderboardSettings
from scorelink.services.leaderboard import LeaderboardSDK
from scorelink.services.submit import FailedScoreQueue


@pytest.fixture
def settings(queue_path: Path) -> LeaderboardSettings:
    return LeaderboardSettings(
        base_url="https://lb.test/v1", api_token="service-token", queue_path=queue_path
    )


@pytest.fixture
def make_sdk(settings: LeaderboardSettings, session, server):
    def build(**overrides) -> LeaderboardSDK:
        for key, value in overrides.items():
            setattr(settings, key, value)
        return LeaderboardSDK(
            settings,
            session,
            clock=lambda: 1_700_000_000.0,
            http_transport=httpx.MockTransport(server),
        )

    return build


def _persist(queue_path: Path, submissions) -> None:
    queue = FailedScoreQueue(queue_path)
    for sub in submissions:
        queue.enqueue(sub)


class TestStartup:
    """Pending scores survive a restart."""

    @pytest.mark.asyncio
    async def test_start_without_retry_restores_queue(
        self, make_sdk, queue_path: Path, make_submission, server
    ) -> None:
        subs = [make_submission(score=1), make_submission(score=2)]
        _persist(queue_path, subs)

        sdk = make_sdk()
        await sdk.start(retry_pending=False)

        assert sdk.pending_submissions == subs
        assert sdk.pending_count == 2
        assert server.requests == []
        await sdk.aclose()

    @pytest.mark.asyncio
    async def test_start_retries_one_pending_score(
        self, make_sdk, queue_path: Path, make_submission, server
    ) -> None:
        subs = [make_submission(score=1), make_submission(score=2)]
        _persist(queue_path, subs)

        async with make_sdk() as sdk:
            assert len(server.requests) == 1
            assert server.json_bodies()[0]["score"] == 2.0
            assert sdk.pending_submissions == [subs[0]]
            assert sdk.submitter.scheduler.armed

        assert not sdk.submitter.scheduler.armed

    @pytest.mark.asyncio
    async def test_missing_token_warns(
        self, make_sdk, caplog: pytest.LogCaptureFixture
    ) -> None:
        sdk = make_sdk(api_token="")
        with caplog.at_level(logging.WARNING):
            await sdk.start()
        await sdk.aclose()

        assert "No API token" in caplog.text

    @pytest.mark.asyncio
    async def test_start_is_idempotent(
        self, make_sdk, queue_path: Path, make_submission, server
    ) -> None:
        _persist(queue_path, [make_submission()])
        server.statuses = [500]
        sdk = make_sdk()

        await sdk.start()
        await sdk.start()

        assert len(server.requests) == 1
        await sdk.aclose()


class TestSubmitAndFlush:
    """End-to-end submit, queue, and flush through the facade."""

    @pytest.mark.asyncio
    async def test_failed_submit_then_flush(
        self, make_sdk, queue_path: Path, server, read_log
    ) -> None:
        server.statuses = [503, 503, 503, 200]
        sdk = make_sdk()
        await sdk.start()

        first = await sdk.submit_guest_score("main", 10, nickname="ada")
        second = await sdk.submit_guest_score("main", 20, nickname="bob", auto_retry=False)

        assert (first, second) == (False, False)
        assert sdk.pending_count == 1
        assert read_log(queue_path)[0]["nickname"] == "ada"

        delivered = await sdk.flush_pending()

        assert delivered == 1
        assert sdk.pending_count == 0
        assert not queue_path.exists()
        await sdk.aclose()

    @pytest.mark.asyncio
    async def test_result_variant_exposes_outcome(self, make_sdk, server) -> None:
        server.statuses = [409]
        async with make_sdk() as sdk:
            result = await sdk.submit_guest_score_result("main", 1)
        assert result.outcome.value == "permanent_reject"
        assert result.status_code == 409

    @pytest.mark.asyncio
    async def test_queries_delegate(self, make_sdk, server) -> None:
        server.body = {"scores": [{"nickname": "ada", "score": 5, "rank": 1}]}
        async with make_sdk() as sdk:
            top = await sdk.get_scores("main")
            mine = await sdk.get_player_scores("main")
            around = await sdk.get_nearby_scores("main", nearby_count=2)
            combined = await sdk.get_scores_with_player("main")

        assert [r.ok for r in (top, mine, around, combined)] == [True] * 4
        assert top.scores[0].name == "ada"
        assert len(server.requests) == 4

    @pytest.mark.asyncio
    async def test_eviction_capacity_from_settings(
        self, make_sdk, queue_path: Path, server
    ) -> None:
        server.statuses = [500]
        sdk = make_sdk(max_failed_queue_size=2)
        await sdk.start()

        for score in (5, 1, 9):
            await sdk.submit_guest_score("main", score)

        assert [s.score for s in sdk.pending_submissions] == [5.0, 9.0]
        await sdk.aclose()
