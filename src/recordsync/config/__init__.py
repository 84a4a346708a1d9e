"""Application configuration helpers."""

from __future__ import annotations

from .env import env_flag, env_path, optional_env, require_env
from .errors import ConfigurationError, ConfigurationFileError, MissingConfigurationError
from .kinds import KindsConfig, get_kinds_config, load_kinds_config, parse_kinds_config
from .logging import configure_logging
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config

__all__ = [
    "ConfigurationError",
    "ConfigurationFileError",
    "DatabaseConfig",
    "KindsConfig",
    "MissingConfigurationError",
    "StorageConfig",
    "configure_logging",
    "env_flag",
    "env_path",
    "get_database_config",
    "get_kinds_config",
    "get_storage_config",
    "load_kinds_config",
    "optional_env",
    "parse_kinds_config",
    "require_env",
]
