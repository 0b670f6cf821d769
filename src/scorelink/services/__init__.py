"""Services package - import from subdirectories directly.

Subpackages:
- config: Connection and retry settings
- leaderboard: Score queries and the LeaderboardSDK facade
- submit: Score posting, the pending queue, and retries

Modules:
- account: Player session interface
- transport: HTTP client for the leaderboard service
"""
