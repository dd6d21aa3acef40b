"""Pydantic models for sandbox-fs configuration schema."""

import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator

from sandbox_fs.config.constants import ALL_TOOLS, DEFAULT_LOG_LEVEL, VALID_LOG_LEVELS


class FilesystemConfig(BaseModel):
    """Sandbox configuration: which directories and tools are exposed."""

    allowed_directories: list[str] = Field(
        default_factory=list,
        description="Directories the server may access. Symlinks are resolved at startup.",
    )
    workspace_mode: bool = Field(
        default=True,
        description="Discover a workspace root when no allowed directories are supplied",
    )
    workspace_root: Path | None = Field(
        default=None,
        description="Directory workspace discovery starts from. Defaults to $PWD or the cwd.",
    )
    enabled_tools: list[str] = Field(
        default_factory=lambda: list(ALL_TOOLS),
        description="Tools exposed to the client (names, or ['all'])",
    )

    @field_validator("allowed_directories")
    @classmethod
    def expand_allowed_directories(cls, v: list[str]) -> list[str]:
        """Expand user home directory in allowed directories."""
        return [os.path.expanduser(d) for d in v]

    @field_validator("workspace_root")
    @classmethod
    def expand_workspace_root(cls, v: Path | None) -> Path | None:
        """Expand user home directory in workspace_root and make it absolute."""
        if v is None:
            return None
        return Path(v).expanduser().absolute()

    @field_validator("enabled_tools")
    @classmethod
    def validate_enabled_tools(cls, v: list[str]) -> list[str]:
        """Expand 'all' and reject unknown tool names."""
        names = [t.strip() for t in v if t.strip()]
        if "all" in names:
            return list(ALL_TOOLS)
        invalid = set(names) - set(ALL_TOOLS)
        if invalid:
            raise ValueError(
                f"Invalid tool names in enabled_tools: {sorted(invalid)}. "
                f"Valid tools: {', '.join(ALL_TOOLS)}"
            )
        return names


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = DEFAULT_LOG_LEVEL
    file: str | None = None

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate log level name."""
        level = v.lower()
        if level not in VALID_LOG_LEVELS:
            raise ValueError(f"Invalid log level: {v}. Valid levels: {sorted(VALID_LOG_LEVELS)}")
        return level

    @field_validator("file")
    @classmethod
    def expand_file(cls, v: str | None) -> str | None:
        """Expand user home directory in the log file path."""
        if v:
            return str(Path(v).expanduser())
        return v


class ServerSettings(BaseModel):
    """Root configuration model for the sandbox-fs server."""

    version: str = "1.0"
    filesystem: FilesystemConfig = Field(default_factory=FilesystemConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    def model_dump_json_pretty(self, **kwargs: Any) -> str:
        """Dump model to pretty-printed JSON string."""
        return self.model_dump_json(indent=2, exclude_none=False, **kwargs)

    def discovery_start(self) -> Path:
        """Directory workspace discovery starts from."""
        if self.filesystem.workspace_root is not None:
            return self.filesystem.workspace_root
        return Path(os.getenv("PWD") or os.getcwd())
