"""
App Configuration.

This module defines the global application settings using Pydantic Settings.
It loads configuration variables from environment variables and/or a .env file,
ensuring typed and validated settings for the application.

Attributes:
    settings: The global instance of the Settings class, ready to be imported and used.
"""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from cla_bot.core.errors import ConfigurationError


class Settings(BaseSettings):
    """
    Application Settings.

    Attributes:
        PROJECT_NAME: The name of the project (default: "The CLA").
        DATABASE_URL: The connection string for the database.
        GITHUB_APP_ID: Numeric id of the GitHub App, kept as raw text so a bad
            value is reported per request rather than at import time.
        CLA_PEM_FILE: Path of the GitHub App private key (PEM).
        GITHUB_WEBHOOK_SECRET: Secret used to verify webhook deliveries.
        CLA_VERSION: The CLA version contributors are currently required to sign.
    """

    # Core
    PROJECT_NAME: str = "The CLA"
    DATABASE_URL: str
    LOG_LEVEL: str = "INFO"
    RUN_MIGRATIONS_ON_STARTUP: bool = True

    # GitHub App
    GITHUB_APP_ID: Optional[str] = None
    CLA_PEM_FILE: str = "the-cla.pem"
    GITHUB_WEBHOOK_SECRET: Optional[str] = None
    GITHUB_API_URL: str = "https://api.github.com"

    # CLA
    CLA_VERSION: str = ""

    # Basic auth for the signature lookup endpoint
    INFO_USERNAME: Optional[str] = None
    INFO_PASSWORD: Optional[str] = None

    model_config = SettingsConfigDict(
        env_file=".env", env_ignore_empty=True, extra="ignore"
    )

    def get_app_id(self) -> int:
        """Parse GITHUB_APP_ID, raising ConfigurationError when missing or invalid."""
        try:
            return int(self.GITHUB_APP_ID or "")
        except ValueError as e:
            raise ConfigurationError(
                f"invalid GITHUB_APP_ID: {self.GITHUB_APP_ID!r}"
            ) from e


settings = Settings()
