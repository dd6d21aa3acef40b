"""sandbox-fs - Filesystem MCP server sandboxed to a set of allowed directories."""

from importlib.metadata import PackageNotFoundError, version

# Read version from package metadata (pyproject.toml)
try:
    __version__ = version("sandbox-fs")
except PackageNotFoundError:
    # Fallback for development environments where package isn't installed
    __version__ = "0.0.0.dev"

from sandbox_fs.config import ServerSettings
from sandbox_fs.roots import RootSet, RootsManager

__all__ = ["RootSet", "RootsManager", "ServerSettings", "__version__"]
