"""Leaderboard services: score queries and the SDK facade."""

from scorelink.services.leaderboard.client import (
    MAX_LIMIT,
    MAX_NEARBY_COUNT,
    ScoreQueryService,
    parse_scores_body,
    scores_path,
)
from scorelink.services.leaderboard.sdk import LeaderboardSDK

__all__ = [
    "LeaderboardSDK",
    "MAX_LIMIT",
    "MAX_NEARBY_COUNT",
    "ScoreQueryService",
    "parse_scores_body",
    "scores_path",
]
