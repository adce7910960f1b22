"""Application settings and configuration.

This module defines all configuration options for the Retail Bandhu queue
service. Settings are loaded from environment variables with sensible defaults.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="Retail Bandhu Queue", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Database configuration
    database_url: str = Field(default="sqlite:///./bandhu_queue.db", alias="DATABASE_URL")
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="USE_TEST_DATABASE")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Trigger secrets; an unset secret rejects every request
    cron_api_key: str | None = Field(default=None, alias="CRON_API_KEY")
    setup_secret_token: str | None = Field(default=None, alias="SETUP_SECRET_TOKEN")

    # Queue processing
    queue_default_batch_size: int = Field(default=10, alias="QUEUE_DEFAULT_BATCH_SIZE")
    queue_cron_batch_size: int = Field(default=20, alias="QUEUE_CRON_BATCH_SIZE")
    queue_retention_days: int = Field(default=7, alias="QUEUE_RETENTION_DAYS")
    queue_max_retries: int = Field(default=3, alias="QUEUE_MAX_RETRIES")
    queue_lock_duration_seconds: int = Field(
        default=300,
        alias="QUEUE_LOCK_DURATION_SECONDS",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @property
    def effective_database_url(self) -> str:
        """Return the database URL respecting testing overrides."""
        if self.use_testing_database and self.test_database_url:
            return self.test_database_url
        return self.database_url


settings = Settings()
