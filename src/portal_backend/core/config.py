"""Application configuration management."""

from typing import Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Database Configuration
    database_url: str = Field(
        default="sqlite:///./portal.db",
        description="SQLAlchemy database URL (PostgreSQL in production)"
    )
    database_pool_size: int = Field(default=10, description="Connection pool size for server databases")
    database_max_overflow: int = Field(default=20, description="Extra connections when the pool is full")

    # API Configuration
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=8000, description="API port")

    # Application Configuration
    log_level: str = Field(default="INFO", description="Logging level")
    environment: str = Field(default="development", description="Environment name")

    # Draft / autosave
    autosave_debounce_seconds: float = Field(
        default=1.0,
        ge=0,
        description="Quiet period before buffered draft edits are flushed"
    )

    # Review ledger
    note_max_length: int = Field(default=2000, description="Maximum review note length")

    # Transient store failures
    max_retry_attempts: int = Field(default=3, ge=1, description="Attempts for idempotent store operations")
    retry_base_delay: float = Field(default=0.05, ge=0, description="Base backoff delay in seconds")

    # Notifications
    notifications_enabled: bool = Field(default=True, description="Emit notification events")

    # Object storage for attachments
    storage_path: str = Field(default="storage/attachments", description="Local attachment storage root")
    max_attachment_size_mb: int = Field(default=10, description="Maximum attachment size in MB")
    public_base_url: Optional[str] = Field(
        default=None,
        description="Base URL used to build attachment references; file:// paths when unset"
    )

    @property
    def is_sqlite(self) -> bool:
        """Whether the configured store is SQLite."""
        return self.database_url.startswith("sqlite")


# Global settings instance
settings = Settings()
