"""Configuration file manager for loading and merging server settings."""

import json
import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from pydantic import ValidationError

from sandbox_fs.config.constants import DEFAULT_CONFIG_PATH
from sandbox_fs.config.schema import ServerSettings
from sandbox_fs.exceptions import ConfigurationError


def get_config_path() -> Path:
    """Get the path to the configuration file.

    Returns:
        Path to ~/.sandbox-fs/settings.json
    """
    return DEFAULT_CONFIG_PATH


def load_config(config_path: Path | None = None) -> ServerSettings:
    """Load configuration from JSON file.

    Args:
        config_path: Optional path to config file. Defaults to ~/.sandbox-fs/settings.json

    Returns:
        ServerSettings loaded from file, or default settings if file doesn't exist

    Raises:
        ConfigurationError: If file exists but is invalid JSON or fails validation

    Example:
        >>> settings = load_config()
        >>> settings.filesystem.workspace_mode
        True
    """
    if config_path is None:
        config_path = get_config_path()

    if not config_path.exists():
        return ServerSettings()

    try:
        with open(config_path) as f:
            data = json.load(f)

        return ServerSettings(**data)

    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in configuration file {config_path}: {e}") from e
    except ValidationError as e:
        raise ConfigurationError(f"Configuration validation failed for {config_path}:\n{e}") from e
    except OSError as e:
        raise ConfigurationError(f"Failed to load configuration from {config_path}: {e}") from e


def merge_with_env() -> dict[str, Any]:
    """Collect configuration overrides from environment variables.

    Returns:
        Nested dictionary shaped like ServerSettings, holding only the values
        set in the environment

    Example:
        >>> os.environ["ENABLED_TOOLS"] = "read_file,list_directory"
        >>> merge_with_env()
        {'filesystem': {'enabled_tools': ['read_file', 'list_directory']}}
    """
    env_overrides: dict[str, Any] = {}

    if os.getenv("SANDBOX_FS_ALLOWED_DIRS"):
        env_overrides.setdefault("filesystem", {})["allowed_directories"] = [
            d for d in os.getenv("SANDBOX_FS_ALLOWED_DIRS", "").split(os.pathsep) if d
        ]
    if os.getenv("ENABLE_WORKSPACE_MODE"):
        env_overrides.setdefault("filesystem", {})["workspace_mode"] = (
            os.getenv("ENABLE_WORKSPACE_MODE", "true").lower() != "false"
        )
    if os.getenv("WORKSPACE_ROOT"):
        env_overrides.setdefault("filesystem", {})["workspace_root"] = os.getenv("WORKSPACE_ROOT")
    if os.getenv("ENABLED_TOOLS"):
        env_overrides.setdefault("filesystem", {})["enabled_tools"] = [
            t.strip() for t in os.getenv("ENABLED_TOOLS", "").split(",") if t.strip()
        ]

    if os.getenv("SANDBOX_FS_LOG_LEVEL"):
        env_overrides.setdefault("logging", {})["level"] = os.getenv("SANDBOX_FS_LOG_LEVEL")
    if os.getenv("SANDBOX_FS_LOG_FILE"):
        env_overrides.setdefault("logging", {})["file"] = os.getenv("SANDBOX_FS_LOG_FILE")

    return env_overrides


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries, with override taking precedence.

    Args:
        base: Base dictionary
        override: Override dictionary (takes precedence)

    Returns:
        Merged dictionary
    """
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_settings(
    config_path: Path | None = None,
    directories: list[str] | None = None,
    overrides: dict[str, Any] | None = None,
) -> ServerSettings:
    """Build the effective settings from file, environment and CLI.

    Precedence, lowest to highest: defaults, settings file, environment
    (including a .env file), CLI overrides, CLI directories.

    Args:
        config_path: Optional settings file path
        directories: Allowed directories given on the command line
        overrides: Extra nested overrides from CLI flags

    Returns:
        Validated ServerSettings

    Raises:
        ConfigurationError: File or merged values fail validation
    """
    load_dotenv()

    settings = load_config(config_path)
    merged = deep_merge(settings.model_dump(), merge_with_env())

    if overrides:
        merged = deep_merge(merged, overrides)
    if directories:
        merged.setdefault("filesystem", {})["allowed_directories"] = list(directories)

    try:
        return ServerSettings(**merged)
    except ValidationError as e:
        raise ConfigurationError(f"Configuration validation failed:\n{e}") from e
