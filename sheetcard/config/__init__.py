"""Configuration loading."""

from .loader import AppConfig, ConfigError, RemoteConfig, load_config

__all__ = [
    "AppConfig",
    "ConfigError",
    "RemoteConfig",
    "load_config",
]
