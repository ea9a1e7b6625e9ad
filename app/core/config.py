"""
Configuration settings for the API.
Loads environment variables and provides application settings.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    """

    # Database
    DATABASE_URL: str = "sqlite:///./banking.db"
    SQL_ECHO: bool = False

    # API
    API_V1_PREFIX: str = "/api/v1"
    PROJECT_NAME: str = "Banking Account Service"
    VERSION: str = "1.0.0"
    DESCRIPTION: str = "REST API for bank account management with balance operations and statistics"

    # Accounts
    DEFAULT_CURRENCY: str = "EUR"

    # Internal self-queries
    SELF_QUERY_BASE_URL: str = "http://localhost:8000"
    SELF_QUERY_TIMEOUT_MS: int = 5000
    SELF_QUERY_RETRY_ATTEMPTS: int = 0

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    @property
    def self_query_api_url(self) -> str:
        """Base URL of this service's own versioned API."""
        return f"{self.SELF_QUERY_BASE_URL.rstrip('/')}{self.API_V1_PREFIX}"


# Create global settings instance
settings = Settings()
