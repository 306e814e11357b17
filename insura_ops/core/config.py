"""Application configuration."""

import os
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from insura_ops.core.exceptions import ConfigurationError
from insura_ops.utils.logging import get_logger

LOGGER = get_logger(__name__)


def find_env_file() -> Optional[Path]:
    """Find .env file in the package directory or the project root."""
    current_dir = os.path.dirname(os.path.abspath(__file__))

    possible_paths = [
        os.path.join(current_dir, ".env"),
        os.path.join(os.path.dirname(current_dir), ".env"),
        os.path.join(os.path.dirname(os.path.dirname(current_dir)), ".env"),
    ]

    for path_str in possible_paths:
        if os.path.exists(path_str):
            path = Path(path_str)
            LOGGER.info(f"Found .env file at: {path}")
            return path

    LOGGER.debug("No .env file found, relying on process environment")
    return None


ENV_FILE = find_env_file()


class SupabaseSettings(BaseSettings):
    """Hosted backend endpoint and credentials."""
    url: str = Field(default="", validation_alias="SUPABASE_URL")
    anon_key: str = Field(default="", validation_alias="SUPABASE_ANON_KEY")
    service_role_key: str = Field(default="", validation_alias="SUPABASE_SERVICE_ROLE_KEY")
    project_id: str = Field(default="", validation_alias="SUPABASE_PROJECT_ID")

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE) if ENV_FILE else None,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_prefix="",
    )


class Settings(BaseSettings):
    """Unified application settings with nested models."""

    app_name: str = Field(default="Insura Ops", validation_alias="APP_NAME")
    app_version: str = "0.1.0"
    environment: str = Field(default="development", validation_alias="ENVIRONMENT")
    debug: bool = Field(default=False, validation_alias="DEBUG")
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    # API Settings
    api_v1_prefix: str = "/api/v1"
    host: str = Field(default="0.0.0.0", validation_alias="HOST")
    port: int = Field(default=8000, validation_alias="PORT")

    # Base URL used in confirmation and password reset links
    site_url: str = Field(default="http://localhost:3001", validation_alias="SITE_URL")

    http_timeout: int = Field(default=60, validation_alias="HTTP_TIMEOUT")
    profile_creation_timeout: float = Field(default=5.0, validation_alias="PROFILE_CREATION_TIMEOUT")

    supabase: SupabaseSettings = Field(default_factory=lambda: SupabaseSettings())

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE) if ENV_FILE else None,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def supabase_url(self) -> str:
        return self.supabase.url.rstrip("/")

    @property
    def supabase_anon_key(self) -> str:
        return self.supabase.anon_key

    @property
    def supabase_service_role_key(self) -> str:
        return self.supabase.service_role_key

    @property
    def supabase_project_id(self) -> str:
        return self.supabase.project_id

    @property
    def confirmation_redirect_url(self) -> str:
        return f"{self.site_url.rstrip('/')}/confirm-email"

    @property
    def password_reset_redirect_url(self) -> str:
        return f"{self.site_url.rstrip('/')}/reset-password"

    def validate_required(self) -> None:
        """Fail fast when the backend endpoint or anonymous key is missing.

        Raises:
            ConfigurationError: If SUPABASE_URL or SUPABASE_ANON_KEY is empty
        """
        missing = []
        if not self.supabase.url:
            missing.append("SUPABASE_URL")
        if not self.supabase.anon_key:
            missing.append("SUPABASE_ANON_KEY")
        if missing:
            raise ConfigurationError(f"Missing required configuration: {', '.join(missing)}")


settings = Settings()

LOGGER.debug(f"Settings initialized with environment: {settings.environment}")
LOGGER.debug(f"Service role key configured: {bool(settings.supabase_service_role_key)}")
