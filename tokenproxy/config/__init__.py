"""Configuration module for the token exchange proxy."""

from .core import CORSSettings, HTTPSettings, LoggingSettings, ServerSettings
from .provider import ProviderSettings
from .settings import (
    ENV_FILE_VAR,
    ConfigurationError,
    Settings,
    default_env_file,
    load_settings,
)


__all__ = [
    "ENV_FILE_VAR",
    "Settings",
    "default_env_file",
    "load_settings",
    "ConfigurationError",
    "CORSSettings",
    "HTTPSettings",
    "LoggingSettings",
    "ProviderSettings",
    "ServerSettings",
]
