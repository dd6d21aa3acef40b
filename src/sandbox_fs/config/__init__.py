"""Configuration management for sandbox-fs."""

from sandbox_fs.config.manager import (
    deep_merge,
    get_config_path,
    load_config,
    load_settings,
    merge_with_env,
)
from sandbox_fs.config.schema import FilesystemConfig, LoggingConfig, ServerSettings
from sandbox_fs.exceptions import ConfigurationError

__all__ = [
    "ConfigurationError",
    "FilesystemConfig",
    "LoggingConfig",
    "ServerSettings",
    "deep_merge",
    "get_config_path",
    "load_config",
    "load_settings",
    "merge_with_env",
]
