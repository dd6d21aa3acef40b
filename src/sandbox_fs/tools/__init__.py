"""Toolsets exposed by the sandbox-fs server."""

from sandbox_fs.tools.filesystem import EditInstruction, FileSystemTools
from sandbox_fs.tools.toolset import SandboxToolset

__all__ = ["EditInstruction", "FileSystemTools", "SandboxToolset"]
