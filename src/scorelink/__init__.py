"""scorelink - leaderboard client with durable, retrying score posts."""

from pathlib import Path

from scorelink.services.leaderboard import LeaderboardSDK

PACKAGE_ROOT = Path(__file__).parent

__version__ = "0.1.0"

__all__ = ["LeaderboardSDK", "PACKAGE_ROOT", "__version__"]
