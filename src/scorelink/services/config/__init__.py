"""Config services for connection and retry settings."""

from scorelink.services.config.settings import (
    LeaderboardSettings,
    SettingsError,
    SettingsManager,
    default_queue_path,
)

__all__ = [
    "LeaderboardSettings",
    "SettingsError",
    "SettingsManager",
    "default_queue_path",
]
