"""Configuration management for the Linear connector."""

from pathlib import Path
from typing import Annotated, Any

import yaml  # type: ignore[import-untyped]
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from .errors import ConfigurationError
from .linear_client import API_ENDPOINT
from .pagination import DEFAULT_PAGE_SIZE


class LinearConfig(BaseSettings):
    """Linear API configuration."""

    model_config = SettingsConfigDict(env_prefix="LINEAR_")

    api_key: str = Field(description="Linear personal API key")
    base_url: str = Field(default=API_ENDPOINT, description="GraphQL endpoint URL")
    skip_projects: bool = Field(default=False, description="Do not sync projects")
    ticketing: bool = Field(default=False, description="Enable ticket operations")
    ticket_schema_team_ids: Annotated[list[str], NoDecode] = Field(
        default_factory=list,
        description="Team IDs to offer as ticket schemas (comma-separated)",
    )
    timeout: float = Field(default=30.0, description="Request timeout in seconds")

    @field_validator("ticket_schema_team_ids", mode="before")
    @classmethod
    def split_team_ids(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [part.strip() for part in value.split(",") if part.strip()]
        return value

    def check(self) -> None:
        """
        Reject invalid combinations of settings.

        Raises:
            ConfigurationError: If team IDs are set without ticketing
        """
        if self.ticket_schema_team_ids and not self.ticketing:
            raise ConfigurationError(
                "linear-connector: ticket_schema_team_ids requires ticketing to be enabled"
            )


class SyncConfig(BaseSettings):
    """Sync behavior configuration."""

    model_config = SettingsConfigDict(env_prefix="SYNC_")

    page_size: int = Field(default=DEFAULT_PAGE_SIZE, gt=0, description="Objects per page")
    checkpoint_file: Path = Field(
        default=Path(".linear-connector-state.json"),
        description="Path to the sync checkpoint file",
    )
    max_retries: int = Field(
        default=8, ge=0, description="Retries for rate limits and server errors"
    )


class AppConfig(BaseSettings):
    """Main application configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    linear: LinearConfig = Field(default_factory=LinearConfig)  # type: ignore[arg-type]
    sync: SyncConfig = Field(default_factory=SyncConfig)

    @classmethod
    def from_yaml(cls, path: Path) -> "AppConfig":
        """Load configuration from a YAML file."""
        if not path.exists():
            return cls()

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        return cls(**data)


def load_config(config_path: Path | None = None) -> AppConfig:
    """Load application configuration from environment and optional YAML file."""
    if config_path:
        return AppConfig.from_yaml(config_path)
    return AppConfig()
