"""
toolgate Configuration Module.

Handles application settings, remote tool loading and tool config persistence.
Uses pydantic-settings for validation and type safety.
"""

from dataclasses import dataclass
from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


@dataclass(frozen=True)
class RemoteApiConfig:
    """Immutable remote loading configuration handed to the tool manager."""

    enabled: bool = False
    tools_url: str | None = None
    timeout_ms: int = 5000
    retry_attempts: int = 3
    retry_delay_ms: int = 1000


class RemoteToolsSettings(BaseSettings):
    """Remote tool registry endpoint."""

    model_config = SettingsConfigDict(env_prefix="REMOTE_TOOLS_")

    enabled: bool = Field(default=False, description="Load tools from a remote registry endpoint")
    url: str | None = Field(default=None, description="URL returning {tools: [...]}")
    timeout_ms: int = Field(default=5000, ge=1, description="Timeout for the registry GET")
    retry_attempts: int = Field(default=3, ge=1, description="Attempts before giving up")
    retry_delay_ms: int = Field(default=1000, ge=0, description="Fixed delay between attempts")

    def to_remote_api_config(self) -> RemoteApiConfig:
        """Freeze these settings into the config consumed by the manager."""
        return RemoteApiConfig(
            enabled=self.enabled,
            tools_url=self.url,
            timeout_ms=self.timeout_ms,
            retry_attempts=self.retry_attempts,
            retry_delay_ms=self.retry_delay_ms,
        )


class ToolConfigSettings(BaseSettings):
    """Persisted enable/disable state."""

    model_config = SettingsConfigDict(env_prefix="TOOL_CONFIG_")

    path: str = Field(default="tool-config.json", description="JSON file holding {toolName, enabled} records")


class StreamSettings(BaseSettings):
    """Streaming endpoints."""

    model_config = SettingsConfigDict(env_prefix="STREAM_")

    ping_interval_seconds: float = Field(default=30.0, gt=0, description="Keep-alive ping interval")


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application
    app_env: Literal["development", "staging", "production"] = "development"
    app_debug: bool = False
    app_log_level: str = "INFO"
    app_host: str = "0.0.0.0"
    app_port: int = 3000

    # Nested settings
    remote_tools: RemoteToolsSettings = Field(default_factory=RemoteToolsSettings)
    tool_config: ToolConfigSettings = Field(default_factory=ToolConfigSettings)
    stream: StreamSettings = Field(default_factory=StreamSettings)

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.app_env == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
