"""Shared response helper functions for tools.

Tools return responses in one of these two shapes instead of raising, so the
dispatcher can hand success and failure back to the client uniformly.
"""

from typing import Any

from sandbox_fs.exceptions import IOFailureError, SandboxError


def create_success_response(result: Any, message: str = "") -> dict:
    """Create standardized success response.

    Args:
        result: Operation result (usually the text sent to the client)
        message: Optional success message for logging/display

    Returns:
        Structured response dict with success=True

    Example:
        >>> create_success_response(result="Successfully wrote to a.txt", message="Wrote 3 bytes")
        {'success': True, 'result': 'Successfully wrote to a.txt', 'message': 'Wrote 3 bytes'}
    """
    return {
        "success": True,
        "result": result,
        "message": message,
    }


def create_error_response(error: str, message: str) -> dict:
    """Create standardized error response.

    Args:
        error: Machine-readable error code (e.g., "path_escape")
        message: Human-friendly error message

    Returns:
        Structured response dict with success=False

    Example:
        >>> create_error_response(error="not_found", message="Source does not exist: a.txt")
        {'success': False, 'error': 'not_found', 'message': 'Source does not exist: a.txt'}
    """
    return {
        "success": False,
        "error": error,
        "message": message,
    }


def error_response_from_exception(error: Exception, path: str | None = None) -> dict:
    """Map a sandbox exception (or a bare OSError) onto an error response.

    Args:
        error: SandboxError subclass or OSError
        path: Client path to mention when the OSError carries none

    Returns:
        Structured response dict with success=False
    """
    if isinstance(error, OSError):
        error = IOFailureError.from_os_error(error, path)
    if isinstance(error, SandboxError):
        return create_error_response(error=error.code, message=str(error))
    raise TypeError(f"Cannot convert {type(error).__name__} to an error response") from error
