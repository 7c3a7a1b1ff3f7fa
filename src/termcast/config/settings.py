"""Configuration management for termcast.

Loads settings from an optional YAML configuration file with environment
variable overrides (``TERMCAST_`` prefix, ``__`` for nested sections).
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config/termcast.yaml")


class ServerConfig(BaseModel):
    command: str = Field(default="top -b", min_length=1, description="Shell command to watch")
    addr: str = Field(default="127.0.0.1:8080", description="Listen address as host:port")
    history_lines: int = Field(default=1000, gt=0)
    restart_delay: float = Field(default=10.0, ge=0)
    stderr_prefix: str = Field(default="ERROR: ")
    send_timeout: float | None = Field(default=5.0, gt=0)
    spawn_failure_fatal: bool = Field(default=False)
    echo_output: bool = Field(default=True)

    @field_validator("addr")
    @classmethod
    def _check_addr(cls, value: str) -> str:
        host, sep, port = value.rpartition(":")
        if not sep or not host or not port.isdigit() or not 0 < int(port) <= 65535:
            raise ValueError(f"addr must look like host:port, got {value!r}")
        return value

    @property
    def host(self) -> str:
        host = self.addr.rpartition(":")[0]
        # Allow bracketed IPv6 literals like [::1]:8080
        return host.strip("[]")

    @property
    def port(self) -> int:
        return int(self.addr.rpartition(":")[2])


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO")
    format: str = Field(
        default="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    file: str | None = Field(default=None)


class Settings(BaseSettings):
    """Root configuration for the termcast server.

    Loads from YAML file and supports environment variable overrides.
    Reads .env files automatically.
    """

    model_config = {
        "env_prefix": "TERMCAST_",
        "env_nested_delimiter": "__",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # YAML values arrive as init kwargs and must rank below the environment
        return env_settings, dotenv_settings, init_settings, file_secret_settings


def load_settings(config_path: Path | str | None = None) -> Settings:
    """Load settings from YAML + .env + environment variables.

    Priority: env vars > .env file > YAML file > defaults
    """
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH

    yaml_data = {}
    if path.exists():
        with open(path) as f:
            yaml_data = yaml.safe_load(f) or {}
        logger.info("Loaded configuration from %s", path)
    else:
        logger.warning("Config file %s not found, using defaults + env vars", path)

    return Settings(**yaml_data)
