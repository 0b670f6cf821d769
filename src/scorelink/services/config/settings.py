"""LeaderboardSettings - Connection and retry configuration for the SDK.

Values come from a .env file, overridden by process environment variables
with the same SCORELINK_ names.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import ClassVar

from dotenv import dotenv_values
from platformdirs import user_data_dir

APP_NAME = "scorelink"
QUEUE_FILE_NAME = "failed_scores.jsonl"
ENV_PREFIX = "SCORELINK_"


def default_queue_path() -> Path:
    """Per-user location of the pending score log.

    - macOS: ~/Library/Application Support/scorelink/failed_scores.jsonl
    - Linux: ~/.local/share/scorelink/failed_scores.jsonl
    - Windows: C:/Users/<user>/AppData/Local/scorelink/failed_scores.jsonl
    """
    return Path(user_data_dir(APP_NAME)) / QUEUE_FILE_NAME


class SettingsError(ValueError):
    """Invalid configuration value."""

    pass


@dataclass
class LeaderboardSettings:
    """Configuration for the leaderboard client."""

    DEFAULT_BASE_URL: ClassVar[str] = "https://api.scorelink.dev/v1"
    DEFAULT_TIMEOUT: ClassVar[float] = 30.0
    DEFAULT_MAX_QUEUE_SIZE: ClassVar[int] = 20
    DEFAULT_INITIAL_BACKOFF: ClassVar[float] = 2.0
    DEFAULT_MAX_BACKOFF: ClassVar[float] = 60.0

    base_url: str = DEFAULT_BASE_URL
    api_token: str = ""
    queue_path: Path = field(default_factory=default_queue_path)
    request_timeout: float = DEFAULT_TIMEOUT
    max_failed_queue_size: int = DEFAULT_MAX_QUEUE_SIZE
    initial_backoff: float = DEFAULT_INITIAL_BACKOFF
    max_backoff: float = DEFAULT_MAX_BACKOFF


# Env var suffix -> (field name, parser)
_FIELDS = {
    "BASE_URL": ("base_url", str),
    "API_TOKEN": ("api_token", str),
    "QUEUE_PATH": ("queue_path", lambda v: Path(v).expanduser()),
    "REQUEST_TIMEOUT": ("request_timeout", float),
    "MAX_FAILED_QUEUE_SIZE": ("max_failed_queue_size", int),
    "INITIAL_BACKOFF": ("initial_backoff", float),
    "MAX_BACKOFF": ("max_backoff", float),
}


class SettingsManager:
    """Loads and saves LeaderboardSettings in a .env file."""

    def __init__(self, env_path: Path | None = None, use_environ: bool = True) -> None:
        self._env_path = env_path or Path.cwd() / ".env"
        self._use_environ = use_environ

    def load(self) -> LeaderboardSettings:
        """Load settings. Missing values fall back to defaults.

        Raises:
            SettingsError: If a value cannot be parsed or is out of range
        """
        values = _read_dotenv(self._env_path)
        if self._use_environ:
            values.update(
                {k: v for k, v in os.environ.items() if k.startswith(ENV_PREFIX)}
            )

        kwargs = {}
        for suffix, (name, parse) in _FIELDS.items():
            raw = values.get(ENV_PREFIX + suffix)
            if raw is None or raw == "":
                continue
            try:
                kwargs[name] = parse(raw)
            except ValueError as e:
                raise SettingsError(f"Invalid {ENV_PREFIX + suffix}: {raw!r}") from e

        settings = LeaderboardSettings(**kwargs)
        _validate(settings)
        return settings

    def save(self, settings: LeaderboardSettings) -> None:
        """Write settings back, keeping unrelated variables in the file."""
        env_vars = _read_dotenv(self._env_path)
        for suffix, (name, _parse) in _FIELDS.items():
            env_vars[ENV_PREFIX + suffix] = str(getattr(settings, name))
        lines = [f"{key}={_quote(value)}" for key, value in env_vars.items()]
        self._env_path.parent.mkdir(parents=True, exist_ok=True)
        self._env_path.write_text("\n".join(lines) + "\n")


def _validate(settings: LeaderboardSettings) -> None:
    if settings.max_failed_queue_size < 1:
        raise SettingsError("max_failed_queue_size must be at least 1")
    if settings.initial_backoff <= 0:
        raise SettingsError("initial_backoff must be positive")
    if settings.max_backoff < settings.initial_backoff:
        raise SettingsError("max_backoff must not be below initial_backoff")
    if settings.request_timeout <= 0:
        raise SettingsError("request_timeout must be positive")


def _read_dotenv(path: Path) -> dict[str, str]:
    # Read on every call so edits made outside the SDK are picked up.
    if not path.exists():
        return {}
    raw = dotenv_values(path, interpolate=False)
    return {key: value for key, value in raw.items() if value is not None}


def _quote(value: str) -> str:
    """Quote a value so _read_dotenv() gives it back unchanged."""
    if "\n" in value or "\r" in value:
        raise SettingsError("Values cannot contain newlines")
    escaped = value.replace("\\", "\\\\")
    if "'" in escaped:
        return '"' + escaped.replace('"', '\\"') + '"'
    return f"'{escaped}'"
