"""
Configuration settings for the Query Layer.

All settings are loaded from environment variables with sensible defaults.
Use .env file for local development.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === Application ===
    APP_NAME: str = "Query Layer"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    ENVIRONMENT: str = "development"

    # === Cache ===
    STALE_AFTER_MS: int = 300_000  # 5 minutes

    # === Retry ===
    QUERY_MAX_RETRIES: int = 3  # 4 attempts total
    MUTATION_MAX_RETRIES: int = 2  # 3 attempts total
    RETRY_BACKOFF_INITIAL_MS: int = 1000  # 0 disables backoff
    RETRY_BACKOFF_MAX_MS: int = 30_000

    # === Session ===
    AUTH_FAILURE_STATUS_CODES: list[int] = [401]
    AUTH_ENTRY_PATH: str = "/auth"

    # === HTTP ===
    API_BASE_URL: str = "http://127.0.0.1:5159"
    LOGOUT_ENDPOINT: str = "/api/auth/logout"
    HTTP_TIMEOUT: float = 10.0  # seconds


# Global settings instance
settings = Settings()
