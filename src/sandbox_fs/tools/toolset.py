"""Base class for sandbox-fs toolsets.

This module provides the abstract base class for creating toolsets. Toolsets
encapsulate related tools with shared dependencies (settings and the allowed
roots), avoiding global state and enabling dependency injection for testing.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

from sandbox_fs.config.schema import ServerSettings
from sandbox_fs.roots import RootsManager
from sandbox_fs.utils.responses import (
    create_error_response,
    create_success_response,
    error_response_from_exception,
)


class SandboxToolset(ABC):
    """Base class for sandbox-fs toolsets.

    Each toolset receives the ServerSettings and the RootsManager holding the
    current allow-list, making both easy to replace in tests.

    Example:
        >>> class MyTools(SandboxToolset):
        ...     def get_tools(self):
        ...         return [self.my_tool]
        ...
        ...     async def my_tool(self, arg: str) -> dict:
        ...         return self._create_success_response(
        ...             result=f"Processed: {arg}",
        ...             message="Tool executed successfully"
        ...         )
    """

    def __init__(self, settings: ServerSettings, roots: RootsManager):
        """Initialize toolset.

        Args:
            settings: Effective server settings
            roots: Manager owning the allowed directories
        """
        self.settings = settings
        self.roots = roots

    @abstractmethod
    def get_tools(self) -> list[Callable]:
        """Get list of tool functions.

        Subclasses must implement this method to return their tool functions.
        Tools should be async callables with proper type hints and docstrings,
        since both are published to the client.

        Returns:
            List of callable tool functions
        """
        pass

    def _create_success_response(self, result: Any, message: str = "") -> dict:
        """Create standardized success response.

        Args:
            result: Tool execution result (usually the text sent to the client)
            message: Optional success message for logging/display

        Returns:
            Structured response dict with success=True
        """
        return create_success_response(result, message)

    def _create_error_response(self, error: str, message: str) -> dict:
        """Create standardized error response.

        Tools should use this when they encounter errors rather than raising
        exceptions, so the dispatcher handles every failure the same way.

        Args:
            error: Machine-readable error code (e.g., "path_escape")
            message: Human-friendly error message

        Returns:
            Structured response dict with success=False
        """
        return create_error_response(error, message)

    def _error_from_exception(self, error: Exception, path: str | None = None) -> dict:
        """Convert a sandbox exception or OSError into an error response."""
        return error_response_from_exception(error, path)
