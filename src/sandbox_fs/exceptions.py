"""Custom exceptions for sandboxed filesystem errors.

Every failure the core can report maps onto one of these classes. Each class
carries a machine-readable ``code`` which the tool layer copies into the
``error`` field of its response dict.
"""


class SandboxError(Exception):
    """Base exception for all sandbox errors.

    Attributes:
        code: Machine-readable error code (e.g. "path_escape")
        path: Client-supplied path the error refers to (optional)
    """

    code = "sandbox_error"

    def __init__(self, message: str, path: str | None = None):
        """Initialize SandboxError.

        Args:
            message: Human-readable error message
            path: Client-supplied path the error refers to
        """
        self.path = path
        super().__init__(message)


class PathEscapeError(SandboxError):
    """Resolved path falls outside every allowed root.

    Always rejected, never retried. Raised on the canonical (symlink-resolved)
    form of the path, so a link inside a root that points outside it is
    caught here too.
    """

    code = "path_escape"


class PathNotFoundError(SandboxError):
    """Target, or an ancestor of it, does not exist when existence is required."""

    code = "not_found"


class PatchMismatchError(SandboxError):
    """An edit's search text could not be located exactly or fuzzily.

    Attributes:
        search_text: The search text of the edit that failed to match
    """

    code = "patch_mismatch"

    def __init__(self, search_text: str, path: str | None = None):
        """Initialize PatchMismatchError.

        Args:
            search_text: Search text of the offending edit
            path: Path of the file being patched
        """
        self.search_text = search_text
        super().__init__(f"Could not find exact match for edit:\n{search_text}", path=path)


class IOFailureError(SandboxError):
    """Underlying filesystem error (permission denied, disk full, EXDEV...).

    Attributes:
        original_error: The OSError raised by the operating system
    """

    code = "io_failure"

    def __init__(self, message: str, path: str | None = None, original_error: OSError | None = None):
        """Initialize IOFailureError.

        Args:
            message: Human-readable error message
            path: Client-supplied path the error refers to
            original_error: OSError that caused this failure
        """
        self.original_error = original_error
        super().__init__(message, path=path)

    @classmethod
    def from_os_error(cls, error: OSError, path: str | None = None) -> "IOFailureError":
        """Wrap an OSError, keeping the operating system's detail in the message."""
        detail = error.strerror or str(error)
        target = path or error.filename
        message = f"{detail}: {target}" if target else detail
        return cls(message, path=path, original_error=error)


class InvalidArgumentError(SandboxError):
    """Shape or semantic violation caught before any filesystem access."""

    code = "invalid_argument"


class ConfigurationError(SandboxError):
    """Raised when no usable configuration (or allow-list) can be obtained."""

    code = "configuration_error"
