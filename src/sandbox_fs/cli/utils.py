"""Utility functions for CLI module."""

import logging
import os
import sys

from rich.console import Console

from sandbox_fs.config.schema import LoggingConfig, ServerSettings
from sandbox_fs.discovery import MarkerWorkspaceDiscovery
from sandbox_fs.exceptions import ConfigurationError
from sandbox_fs.roots import RootsManager, expand_home

logger = logging.getLogger(__name__)


def get_console() -> Console:
    """Create a Rich console writing to stderr.

    stdout carries the MCP stdio protocol, so human-facing output never goes
    there while the server runs.

    Returns:
        Console: Configured Rich console instance
    """
    return Console(stderr=True)


def setup_logging(config: LoggingConfig) -> None:
    """Configure the root logger once for the server process.

    Logs go to the configured file, or to stderr when none is set.

    Args:
        config: Logging settings (level name and optional file)
    """
    numeric_level = getattr(logging, config.level.upper(), logging.INFO)

    if config.file:
        os.makedirs(os.path.dirname(os.path.abspath(config.file)), exist_ok=True)
        logging.basicConfig(
            level=numeric_level,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            filename=config.file,
            filemode="a",
            force=True,
        )
    else:
        logging.basicConfig(
            level=numeric_level,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            stream=sys.stderr,
            force=True,
        )


def check_directories(directories: list[str]) -> None:
    """Verify every configured directory exists and is a directory.

    Raises:
        ConfigurationError: A directory is missing or is not a directory
    """
    for directory in directories:
        expanded = os.path.abspath(expand_home(directory))
        if not os.path.exists(expanded):
            raise ConfigurationError(f"Error accessing directory {directory}: does not exist")
        if not os.path.isdir(expanded):
            raise ConfigurationError(f"Error: {directory} is not a directory")


def build_roots_manager(settings: ServerSettings) -> RootsManager:
    """Create the RootsManager holding the startup allow-list.

    Configured directories are used as given. With none configured and
    workspace mode on, the discovered workspace root is used instead; with
    neither, the set starts empty and waits for roots from the client.

    Raises:
        ConfigurationError: A configured directory is not an existing directory
    """
    fs = settings.filesystem
    check_directories(fs.allowed_directories)

    discovery = MarkerWorkspaceDiscovery(settings.discovery_start())
    manager = RootsManager(fs.allowed_directories, discovery=discovery, workspace_mode=fs.workspace_mode)

    if not manager.current():
        workspace = manager.discover_workspace()
        if workspace:
            logger.info(f"Using workspace root {workspace}")
            manager.replace([workspace])
        else:
            logger.info("No allowed directories configured, waiting for client roots")

    return manager
