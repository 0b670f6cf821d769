"""Leaderboard queries: fetch and normalize ranked score listings."""

import logging
from datetime import datetime
from typing import Any
from urllib.parse import quote

from scorelink.models.score import ScoreRecord, ScoresResult
from scorelink.services.account import PlayerSession
from scorelink.services.transport import LeaderboardTransport, TransportError

_log = logging.getLogger(__name__)

MAX_LIMIT = 50
MAX_NEARBY_COUNT = 25

TimeFilter = datetime | str | None


def scores_path(leaderboard_id: str, suffix: str = "scores/") -> str:
    return f"/leaderboards/{quote(leaderboard_id, safe='')}/{suffix}"


def _failure(error: str) -> ScoresResult:
    return ScoresResult(scores=[], has_more_scores=False, error=error)


def _time_param(value: TimeFilter) -> str | None:
    if isinstance(value, datetime):
        return value.isoformat()
    return value or None


def _parse_timestamp(raw_value: Any) -> float:
    if raw_value is None or raw_value == "":
        return 0.0
    if isinstance(raw_value, (int, float)):
        return float(raw_value)
    # ISO-8601, as returned by the service ("2024-05-01T12:00:00Z")
    try:
        return datetime.fromisoformat(str(raw_value)).timestamp()
    except (OverflowError, OSError) as e:
        raise ValueError(f"timestamp out of range: {raw_value!r}") from e


def _parse_record(item: dict[str, Any], fallback_rank: int) -> ScoreRecord:
    """Normalize one entry of the `scores` array.

    Raises:
        KeyError, TypeError, ValueError, OverflowError: If the entry is malformed
    """
    if not isinstance(item, dict):
        raise TypeError("score entry is not a JSON object")
    player = item.get("player")
    name = item.get("nickname") or item.get("name")
    if not name and isinstance(player, dict):
        name = player.get("nickname") or player.get("name")

    metadata = item.get("metadata") or {}
    if not isinstance(metadata, dict):
        raise TypeError("metadata must be an object")

    return ScoreRecord(
        name=str(name or ""),
        score=float(item["score"]),
        rank=fallback_rank if item.get("rank") is None else int(item["rank"]),
        timestamp=_parse_timestamp(item.get("timestamp") or item.get("created_at")),
        metadata=metadata,
        is_current_player=bool(item.get("is_current_player", False)),
    )


def parse_scores_body(body: Any, offset: int = 0) -> ScoresResult:
    """Turn a decoded response body into a ScoresResult.

    Raises:
        KeyError, TypeError, ValueError, OverflowError: If the body does not match
            the schema
    """
    if not isinstance(body, dict):
        raise TypeError("response is not a JSON object")
    items = body["scores"]
    if not isinstance(items, list):
        raise TypeError("'scores' is not a list")

    scores = [_parse_record(item, offset + i + 1) for i, item in enumerate(items)]
    return ScoresResult(
        scores=scores,
        has_more_scores=bool(body.get("next_url")),
    )


class ScoreQueryService:
    """Fetches scores from the leaderboard service.

    Every method returns a ScoresResult and never raises; failures are
    reported in ScoresResult.error.
    """

    def __init__(self, transport: LeaderboardTransport, session: PlayerSession) -> None:
        self._transport = transport
        self._session = session
        self._in_flight = False

    @property
    def busy(self) -> bool:
        return self._in_flight

    async def get_scores(
        self,
        leaderboard_id: str,
        offset: int = 0,
        limit: int = 10,
        start_time: TimeFilter = None,
        end_time: TimeFilter = None,
    ) -> ScoresResult:
        """Top scores of a leaderboard."""
        return await self._fetch_page(
            scores_path(leaderboard_id), offset, limit, start_time, end_time
        )

    async def get_player_scores(
        self,
        leaderboard_id: str,
        offset: int = 0,
        limit: int = 10,
        start_time: TimeFilter = None,
        end_time: TimeFilter = None,
    ) -> ScoresResult:
        """Scores posted by the current player."""
        return await self._fetch_page(
            scores_path(leaderboard_id, "scores/player/"),
            offset,
            limit,
            start_time,
            end_time,
            needs_player=True,
        )

    async def get_scores_with_player(
        self,
        leaderboard_id: str,
        offset: int = 0,
        limit: int = 10,
        start_time: TimeFilter = None,
        end_time: TimeFilter = None,
    ) -> ScoresResult:
        """Top scores, with the current player's best score included."""
        return await self._fetch_page(
            scores_path(leaderboard_id, "scores-with-player/"),
            offset,
            limit,
            start_time,
            end_time,
            needs_player=True,
        )

    async def get_nearby_scores(
        self,
        leaderboard_id: str,
        nearby_count: int = 5,
        anchor: str | None = None,
        start_time: TimeFilter = None,
        end_time: TimeFilter = None,
    ) -> ScoresResult:
        """Scores ranked around the current player's (or `anchor`'s) score."""
        if not 1 <= nearby_count <= MAX_NEARBY_COUNT:
            return _failure(
                f"nearby_count must be between 1 and {MAX_NEARBY_COUNT}, got {nearby_count}"
            )
        params = {
            "nearby_count": nearby_count,
            "anchor": anchor,
            "start_time": _time_param(start_time),
            "end_time": _time_param(end_time),
        }
        return await self._fetch(
            scores_path(leaderboard_id, "scores/nearby/"), params, needs_player=True
        )

    async def _fetch_page(
        self,
        path: str,
        offset: int,
        limit: int,
        start_time: TimeFilter,
        end_time: TimeFilter,
        needs_player: bool = False,
    ) -> ScoresResult:
        if offset < 0:
            return _failure(f"offset must be 0 or greater, got {offset}")
        if not 1 <= limit <= MAX_LIMIT:
            return _failure(f"limit must be between 1 and {MAX_LIMIT}, got {limit}")
        params = {
            "offset": offset,
            "limit": limit,
            "start_time": _time_param(start_time),
            "end_time": _time_param(end_time),
        }
        return await self._fetch(path, params, needs_player=needs_player, offset=offset)

    async def _fetch(
        self,
        path: str,
        params: dict[str, Any],
        needs_player: bool = False,
        offset: int = 0,
    ) -> ScoresResult:
        token = self._session.token if self._session.is_logged_in() else ""
        if needs_player and not token:
            return _failure("A logged in player is required for this query")
        if self._in_flight:
            return _failure("Another leaderboard query is in flight")

        query = {k: v for k, v in params.items() if v is not None}
        self._in_flight = True
        try:
            response = await self._transport.get(path, token=token or None, params=query)
        except TransportError as e:
            _log.warning("Leaderboard query failed: %s", e)
            return _failure(f"Request failed: {e}")
        finally:
            self._in_flight = False

        if not response.is_success:
            error = f"Leaderboard query failed ({response.status_code}): {response.error_message()}"
            _log.warning("%s", error)
            return _failure(error)

        try:
            return parse_scores_body(response.json(), offset)
        except (KeyError, TypeError, ValueError, OverflowError) as e:
            _log.warning("Malformed leaderboard response from %s: %s", path, e)
            return _failure(f"Malformed leaderboard response: {e}")
