from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Central configuration loaded from environment / .env file."""

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "CCSTATS_",
        "extra": "ignore",
    }

    # Local storage (history log + credential slots)
    data_dir: Path = Path.home() / ".ccstats"
    history_file: str = "usage_history.json"
    credentials_file: str = "credentials.json"

    # claude.ai web API
    usage_base_url: str = "https://claude.ai/api"
    usage_timeout: float = 15.0
    client_version: str = "1.0.0"  # sent as anthropic-client-version

    # Status page
    status_url: str = "https://status.claude.com/api/v2/status.json"
    status_timeout: float = 10.0

    # Release feed + installed CLI probe
    release_feed_url: str = "https://api.github.com/repos/anthropics/claude-code/releases/latest"
    release_timeout: float = 15.0
    claude_cli_path: str = "claude"  # assumes `claude` is on PATH
    claude_stats_file: Path = Path.home() / ".claude" / "stats-cache.json"

    # Polling cadences (seconds)
    usage_poll_interval: int = 300
    version_check_interval: int = 3600
    version_check_throttle: int = 1800
    usage_stale_after: int = 60  # refresh_if_needed threshold

    # History
    history_dedup_seconds: int = 60
    # Reset times jitter by a few seconds between polls; bucket width for grouping
    session_bucket_seconds: int = 60

    # API
    api_host: str = "127.0.0.1"
    api_port: int = 8765

    # Logging
    log_level: str = "INFO"

    @property
    def history_path(self) -> Path:
        return self.data_dir / self.history_file

    @property
    def credentials_path(self) -> Path:
        return self.data_dir / self.credentials_file


settings = Settings()
