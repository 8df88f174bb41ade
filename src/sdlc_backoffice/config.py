"""
SDLC Backoffice Configuration.

Centralized configuration management using Pydantic Settings.
Loads configuration from environment variables.
"""

import os
from pathlib import Path
from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_API_URL = "http://localhost:8081/api"


def get_xdg_state_dir() -> str:
    """
    Get XDG-compliant state directory for backoffice logs.

    Follows XDG Base Directory Specification:
    - Uses $XDG_STATE_HOME/sdlc-backoffice if XDG_STATE_HOME is set
    - Falls back to $HOME/.local/state/sdlc-backoffice if not set
    - Returns relative path ./logs if HOME not available (dev/testing)

    Returns:
        str: Path to state/logs directory
    """
    xdg_state_home = os.getenv("XDG_STATE_HOME")
    if xdg_state_home:
        return str(Path(xdg_state_home) / "sdlc-backoffice" / "logs")

    home = os.getenv("HOME")
    if home:
        return str(Path(home) / ".local" / "state" / "sdlc-backoffice" / "logs")

    # Fallback for development/testing environments without HOME
    return "./logs"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    postgres_db: str = "sdlc_agents"
    postgres_user: str = "sdlc"
    postgres_password: str = "sdlc_dev_password"
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    database_url_override: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("database_url", "database_url_override"),
    )  # DATABASE_URL wins over the postgres_* components

    db_pool_size: int = 5
    db_pool_max_overflow: int = 5
    db_pool_timeout: int = 30
    db_pool_recycle: int = 1800

    @property
    def database_url(self) -> str:
        """Database URL, taken from DATABASE_URL or built from components."""
        if self.database_url_override:
            return self.database_url_override
        return (
            f"postgresql://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    # API server
    api_host: str = "0.0.0.0"
    api_port: int = 8081
    api_reload: bool = False
    cors_origins: list[str] = ["http://localhost:3000", "http://localhost:5173"]

    # API client
    backoffice_api_url: str = DEFAULT_API_URL
    api_timeout_seconds: float = 10.0
    api_max_retries: int = 2  # Read-only requests only

    # Logging
    log_level: str = "INFO"
    log_dir: str = ""  # XDG-compliant log directory (defaults to XDG state dir if empty)
    log_format: str = "standard"  # standard or json
    log_console_enabled: bool = True
    log_file_enabled: bool = False
    log_max_bytes: int = 10_485_760  # 10MB per log file
    log_backup_count: int = 5

    @property
    def log_directory(self) -> Path:
        """Get the log directory path, using XDG default if not specified."""
        if self.log_dir:
            return Path(self.log_dir).expanduser()
        return Path(get_xdg_state_dir())


# Global settings instance
settings = Settings()
