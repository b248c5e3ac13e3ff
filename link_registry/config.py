"""Configuration management for the link registry."""

from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


SECONDS_PER_DAY = 24 * 60 * 60


class StoreConfig(BaseSettings):
    """Backing store connection settings (DB_* environment variables)."""

    host: str = Field(
        default="localhost",
        description="PostgreSQL host"
    )

    port: int = Field(
        default=5432,
        description="PostgreSQL port"
    )

    user: str = Field(
        default="postgres",
        description="Database user"
    )

    password: str = Field(
        default="",
        description="Database password"
    )

    name: str = Field(
        default="url_shortener",
        description="Database name"
    )

    max_open_connections: int = Field(
        default=10,
        ge=1,
        description="Upper bound of pooled connections"
    )

    max_idle_connections: int = Field(
        default=2,
        ge=0,
        description="Connections kept open while idle"
    )

    max_inactive_connection_lifetime_seconds: float = Field(
        default=3600.0,
        ge=0,
        description="Seconds an idle pooled connection lives before it is closed (0 keeps it forever)"
    )

    connect_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Timeout for establishing a connection"
    )

    create_tables: bool = Field(
        default=False,
        description="Create the url table on startup if it does not exist"
    )

    model_config = SettingsConfigDict(
        env_prefix="DB_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


class Config(BaseSettings):
    """Server configuration."""

    # Server settings
    host: str = Field(
        default="0.0.0.0",
        description="Host to bind to"
    )

    port: int = Field(
        default=8888,
        description="Port to listen on"
    )

    # Registry settings
    expiration_days: int = Field(
        default=7,
        ge=1,
        description="Lifetime of a registered link in days"
    )

    sweep_interval_seconds: Optional[int] = Field(
        default=None,
        ge=1,
        description="Seconds between expiry sweeps (defaults to the expiration period)"
    )

    id_length: int = Field(
        default=6,
        description="Required length of link ids"
    )

    # Logging settings
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    log_file: Optional[str] = Field(
        default=None,
        description="Log file path (logs to stdout if not specified)"
    )

    log_json: bool = Field(
        default=False,
        description="Use JSON format for logs"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def ttl_seconds(self) -> int:
        """Expiration period converted to seconds."""
        return self.expiration_days * SECONDS_PER_DAY


def load_config(**overrides) -> Config:
    """Load configuration from environment, applying explicit overrides."""
    return Config(**{k: v for k, v in overrides.items() if v is not None})
