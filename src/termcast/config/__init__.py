"""Configuration management for termcast.

Loads and validates YAML-based configuration with Pydantic models.
Supports environment variable overrides for every setting.
"""

from termcast.config.settings import LoggingConfig, ServerConfig, Settings, load_settings

__all__ = ["LoggingConfig", "ServerConfig", "Settings", "load_settings"]
