"""
OASTWatch Configuration Management

Provides the per-client configuration model and the environment-backed
settings used by the command line and logging setup.
"""

import random
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_TIMEOUT = 30

DEFAULT_SERVERS = (
    "oast.pro",
    "oast.live",
    "oast.site",
    "oast.online",
    "oast.fun",
    "oast.me",
)


def pick_default_server() -> str:
    """Choose one of the public correlation servers."""
    return random.choice(DEFAULT_SERVERS)


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Logging level")
    file_path: Optional[str] = Field(default=None, description="Log file path")
    max_file_size: int = Field(
        default=10_000_000, description="Max log file size in bytes"
    )
    backup_count: int = Field(default=5, description="Number of backup log files")

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v.upper()


class ClientConfig(BaseModel):
    """Collaborator client configuration."""

    server: Optional[str] = Field(
        default=None, description="Correlation server host or base URL"
    )
    timeout: int = Field(
        default=DEFAULT_TIMEOUT, description="Network timeout in seconds"
    )
    token: Optional[str] = Field(
        default=None, description="Authorization token for self-hosted servers"
    )
    verify_ssl: bool = Field(default=True, description="Verify server certificates")
    proxy: Optional[str] = Field(default=None, description="HTTP proxy URL")

    model_config = ConfigDict(extra="ignore", frozen=True)

    @field_validator("server", mode="before")
    @classmethod
    def validate_server(cls, v: Any) -> Optional[str]:
        if v is None:
            return None
        v = str(v).strip().rstrip("/")
        if not v:
            return None
        if not urlsplit(_with_scheme(v)).hostname:
            raise ValueError(f"Invalid server address: {v!r}")
        return v

    @field_validator("timeout", mode="before")
    @classmethod
    def default_timeout(cls, v: Any) -> Any:
        return DEFAULT_TIMEOUT if v is None else v

    @field_validator("timeout")
    @classmethod
    def validate_timeout(cls, v: int) -> int:
        if v <= 0:
            raise ValueError(f"Invalid timeout: {v}. Must be greater than 0")
        return v

    @classmethod
    def from_options(
        cls, options: Union["ClientConfig", Mapping[str, Any], None] = None
    ) -> "ClientConfig":
        """
        Coerce caller-supplied options into a ClientConfig.

        Args:
            options: An existing config, a mapping of options, or None

        Returns:
            ClientConfig with defaults applied
        """
        if options is None:
            return cls()
        if isinstance(options, cls):
            return options
        return cls.model_validate(dict(options))

    def with_server(self) -> "ClientConfig":
        """Return a copy whose server is filled in with a default when absent."""
        if self.server:
            return self
        return self.model_copy(update={"server": pick_default_server()})

    @property
    def base_url(self) -> str:
        """Base URL of the correlation server API."""
        if not self.server:
            raise ValueError("No server configured")
        return _with_scheme(self.server)

    @property
    def domain(self) -> str:
        """Hostname under which interaction addresses are delegated."""
        return urlsplit(self.base_url).hostname or ""


def _with_scheme(server: str) -> str:
    if "://" in server:
        return server
    return f"https://{server}"


class OASTWatchConfig(BaseSettings):
    """Main OASTWatch configuration."""

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    client: ClientConfig = Field(default_factory=ClientConfig)
    poll_interval: float = Field(
        default=5.0, description="Seconds between polls in watch mode"
    )

    model_config = SettingsConfigDict(
        env_prefix="OASTWATCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("poll_interval")
    @classmethod
    def validate_poll_interval(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"Invalid poll interval: {v}. Must be greater than 0")
        return v


# Global configuration instance
_config: Optional[OASTWatchConfig] = None


def get_config() -> OASTWatchConfig:
    """
    Get the global configuration instance.

    Returns:
        The global OASTWatchConfig instance
    """
    global _config
    if _config is None:
        _config = load_config()
    return _config


def load_config(config_file: Optional[Path] = None) -> OASTWatchConfig:
    """
    Load configuration from environment variables and an optional env file.

    Args:
        config_file: Optional path to a dotenv-style configuration file

    Returns:
        Loaded configuration instance
    """
    if config_file and config_file.exists():
        return OASTWatchConfig(_env_file=str(config_file))
    return OASTWatchConfig()


def reload_config(config_file: Optional[Path] = None) -> OASTWatchConfig:
    """
    Reload the global configuration.

    Args:
        config_file: Optional path to configuration file

    Returns:
        Reloaded configuration instance
    """
    global _config
    _config = load_config(config_file)
    return _config


def client_options(**overrides: Any) -> Dict[str, Any]:
    """
    Merge configured client defaults with explicit overrides.

    Overrides whose value is None keep the configured default.
    """
    options = get_config().client.model_dump()
    options.update({k: v for k, v in overrides.items() if v is not None})
    return options
