# =============================================================================
# Ingest Relay - Configuration
# =============================================================================
"""
Application configuration using Pydantic Settings.

Loads configuration from environment variables. The Supabase URL and key
have no defaults: the relay refuses to forward anything until both are set.
"""

from functools import lru_cache
from typing import Optional

from pydantic import BaseModel, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(Exception):
    """Raised when required upstream settings are missing."""
    pass


class UpstreamConfig(BaseModel):
    """
    Validated destination for normalized event batches.

    Attributes:
        base_url: Supabase project URL, without trailing slash
        api_key: Key sent as both bearer token and apikey header
        table: Target table under /rest/v1/
    """

    base_url: str = Field(..., min_length=1)
    api_key: SecretStr
    table: str = Field(default="analytics_events", min_length=1)

    @property
    def insert_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/rest/v1/{self.table}"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes:
        supabase_url: Supabase project URL (required, no default)
        supabase_anon_key: Supabase API key (required, no default)
        supabase_table: Table receiving normalized events
        environment: Current environment (development/staging/production)
        log_level: Logging verbosity level
        service_name: Name of this service for logging
    """

    # Supabase Configuration
    supabase_url: Optional[str] = None
    supabase_anon_key: Optional[SecretStr] = None
    supabase_table: str = "analytics_events"

    # Application Configuration
    environment: str = "development"
    log_level: str = "INFO"
    service_name: str = "ingest-relay"

    # Pydantic Settings Configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    def upstream_config(self) -> UpstreamConfig:
        """
        Build the upstream destination from these settings.

        Raises:
            ConfigurationError: If the URL or key is missing
        """
        missing = []
        if not self.supabase_url:
            missing.append("SUPABASE_URL")
        if self.supabase_anon_key is None or not self.supabase_anon_key.get_secret_value():
            missing.append("SUPABASE_ANON_KEY")
        if missing:
            raise ConfigurationError(
                f"Missing required configuration: {', '.join(missing)}"
            )

        return UpstreamConfig(
            base_url=self.supabase_url,
            api_key=self.supabase_anon_key,
            table=self.supabase_table,
        )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns:
        Settings: Application configuration instance
    """
    return Settings()
