"""Configuration constants for sandbox-fs.

This module provides a single source of truth for default configuration values.
Separated from schema.py and manager.py to avoid circular imports.
"""

from pathlib import Path

# Default paths
DEFAULT_CONFIG_PATH = Path.home() / ".sandbox-fs" / "settings.json"

# Default logging settings
DEFAULT_LOG_LEVEL = "info"
VALID_LOG_LEVELS = {"debug", "info", "warning", "error", "critical"}

# Streaming reads
READ_CHUNK_SIZE = 1024

# Files or directories whose presence marks a workspace root
WORKSPACE_MARKERS = (
    ".git",
    ".vscode",
    "package.json",
    "Cargo.toml",
    "pyproject.toml",
    "go.mod",
    ".cursor",
    "tsconfig.json",
    "composer.json",
)

# Tool names, in the order they are registered
ALL_TOOLS = (
    "read_file",
    "read_multiple_files",
    "write_file",
    "edit_file",
    "create_directory",
    "list_directory",
    "list_directory_with_sizes",
    "directory_tree",
    "move_file",
    "search_files",
    "get_file_info",
    "list_allowed_directories",
)
