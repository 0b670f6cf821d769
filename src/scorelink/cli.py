"""Command line interface for quick checks against a leaderboard.

Settings come from ./.env and SCORELINK_* environment variables. The
player token is read from SCORELINK_PLAYER_TOKEN or --token.
"""

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path

from scorelink.models.score import ScoresResult
from scorelink.services.account import StaticSession
from scorelink.services.config import SettingsError, SettingsManager
from scorelink.services.leaderboard import LeaderboardSDK

PLAYER_TOKEN_ENV_VAR = "SCORELINK_PLAYER_TOKEN"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="scorelink", description=__doc__)
    parser.add_argument("--env-file", type=Path, default=None, help="Path to .env file")
    parser.add_argument("--token", default=None, help="Player token")
    parser.add_argument("-v", "--verbose", action="store_true")
    sub = parser.add_subparsers(dest="command", required=True)

    scores = sub.add_parser("scores", help="List top scores")
    scores.add_argument("leaderboard")
    scores.add_argument("--offset", type=int, default=0)
    scores.add_argument("--limit", type=int, default=10)
    scores.add_argument("--player", action="store_true", help="Only the player's scores")

    nearby = sub.add_parser("nearby", help="List scores around the player")
    nearby.add_argument("leaderboard")
    nearby.add_argument("--count", type=int, default=5)
    nearby.add_argument("--anchor", default=None)

    submit = sub.add_parser("submit", help="Post a score")
    submit.add_argument("leaderboard")
    submit.add_argument("score", type=float)
    submit.add_argument("--nickname", default="")
    submit.add_argument("--no-retry", action="store_true")

    sub.add_parser("pending", help="Show scores waiting to be retried")
    sub.add_parser("flush", help="Retry pending scores now")
    return parser


def format_scores(result: ScoresResult) -> str:
    if result.error:
        return f"Error: {result.error}"
    if not result.scores:
        return "No scores."
    lines = [
        f"{s.rank:>4}  {s.name or '-':<15}  {s.score:>12g}{'  *' if s.is_current_player else ''}"
        for s in result.scores
    ]
    if result.has_more_scores:
        lines.append("  ...")
    return "\n".join(lines)


async def run(args: argparse.Namespace) -> int:
    settings = SettingsManager(args.env_file).load()
    session = StaticSession(args.token or os.environ.get(PLAYER_TOKEN_ENV_VAR, ""))

    sdk = LeaderboardSDK(settings, session)
    await sdk.start(retry_pending=args.command != "pending")
    try:
        return await _dispatch(sdk, args)
    finally:
        await sdk.aclose()


async def _dispatch(sdk: LeaderboardSDK, args: argparse.Namespace) -> int:
    if args.command == "scores":
        if args.player:
            result = await sdk.get_player_scores(args.leaderboard, args.offset, args.limit)
        else:
            result = await sdk.get_scores(args.leaderboard, args.offset, args.limit)
        print(format_scores(result))
        return 0 if result.ok else 1

    if args.command == "nearby":
        result = await sdk.get_nearby_scores(args.leaderboard, args.count, args.anchor)
        print(format_scores(result))
        return 0 if result.ok else 1

    if args.command == "submit":
        outcome = await sdk.submit_guest_score_result(
            args.leaderboard,
            args.score,
            nickname=args.nickname,
            auto_retry=not args.no_retry,
        )
        print(outcome.outcome.value if outcome.ok else f"{outcome.outcome.value}: {outcome.error}")
        return 0 if outcome.ok else 1

    if args.command == "pending":
        for s in sdk.pending_submissions:
            print(f"{s.leaderboard_id}  {s.nickname or '-':<15}  {s.score:g}  {s.timestamp:.0f}")
        print(f"{sdk.pending_count} pending")
        return 0

    delivered = await sdk.flush_pending()
    print(f"Delivered {delivered}, {sdk.pending_count} still pending")
    return 0 if sdk.pending_count == 0 else 1


def main(argv: list[str] | None = None) -> None:
    """Entry point for the command line."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        sys.exit(asyncio.run(run(args)))
    except SettingsError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(2)
