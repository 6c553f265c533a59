"""Configuration for the todokeeper service.

Settings are read once from the environment (and an optional ``.env`` file).
Environment variables use the TODOKEEPER__ prefix (e.g., TODOKEEPER__URL=http://0.0.0.0:8081).
"""

from typing import List, Optional

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class TodoKeeperSettings(BaseSettings):
    """todokeeper service configuration settings."""

    model_config = SettingsConfigDict(
        env_prefix="TODOKEEPER__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Service URL
    URL: str = "http://localhost:8080"

    # Database
    MONGO_URI: str = "mongodb://localhost:27017"
    MONGO_DB: str = "todokeeper"
    MONGO_TIMEOUT_MS: int = 5000

    # Auth / JWT
    JWT_SECRET: SecretStr = SecretStr("dev-access-secret-change-me-0123456789")
    JWT_REFRESH_SECRET: SecretStr = SecretStr("dev-refresh-secret-change-me-0123456789")
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRES_IN: int = 15 * 60  # seconds
    JWT_REFRESH_EXPIRES_IN: int = 60 * 60  # seconds

    # Logged-off tokens
    REVOCATION_TTL: int = 12 * 60 * 60  # seconds
    REVOCATION_SWEEP_INTERVAL: int = 10 * 60  # seconds

    # HTTP
    CORS_ORIGINS: List[str] = ["*"]

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_DIR: Optional[str] = "~/.cache/todokeeper/logs"
    LOG_JSON: bool = True
    DEBUG: bool = False


_settings: Optional[TodoKeeperSettings] = None


def get_settings() -> TodoKeeperSettings:
    """Load cached settings with TODOKEEPER__ env override support.

    Examples:
        ```bash
        export TODOKEEPER__URL=http://0.0.0.0:8081
        export TODOKEEPER__MONGO_URI=mongodb://mongo:27017
        ```

        ```python
        settings = get_settings()
        print(settings.URL)  # http://localhost:8080
        ```
    """
    global _settings
    if _settings is None:
        _settings = TodoKeeperSettings()
    return _settings


def reset_settings() -> None:
    """Reset settings cache (useful in tests)."""
    global _settings
    _settings = None
