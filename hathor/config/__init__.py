"""Configuration module for Hathor server composition."""

from .auth import AuthSettings
from .logging import LoggingSettings
from .server import ServerSettings
from .settings import ConfigurationError, Settings, find_toml_config_file


__all__ = [
    "Settings",
    "AuthSettings",
    "LoggingSettings",
    "ServerSettings",
    "ConfigurationError",
    "find_toml_config_file",
]
