"""Utility modules for sandbox-fs."""

from sandbox_fs.utils.formatting import format_size
from sandbox_fs.utils.responses import (
    create_error_response,
    create_success_response,
    error_response_from_exception,
)

__all__ = [
    "create_success_response",
    "create_error_response",
    "error_response_from_exception",
    "format_size",
]
