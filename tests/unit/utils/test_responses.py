"""Unit tests for sandbox_fs.utils (responses and formatting)."""

import errno

import pytest

from sandbox_fs.exceptions import PathEscapeError
from sandbox_fs.utils.formatting import format_size
from sandbox_fs.utils.responses import (
    create_error_response,
    create_success_response,
    error_response_from_exception,
)


@pytest.mark.unit
class TestResponses:
    def test_success_shape(self):
        assert create_success_response("ok", "done") == {
            "success": True,
            "result": "ok",
            "message": "done",
        }

    def test_error_shape(self):
        assert create_error_response("not_found", "missing") == {
            "success": False,
            "error": "not_found",
            "message": "missing",
        }

    def test_sandbox_error_keeps_code(self):
        response = error_response_from_exception(PathEscapeError("denied", path="/etc"))

        assert response["error"] == "path_escape"
        assert response["message"] == "denied"

    def test_os_error_becomes_io_failure(self):
        error = PermissionError(errno.EACCES, "Permission denied")

        response = error_response_from_exception(error, "/ws/locked")

        assert response["error"] == "io_failure"
        assert response["message"] == "Permission denied: /ws/locked"

    def test_other_exceptions_are_not_converted(self):
        with pytest.raises(TypeError):
            error_response_from_exception(RuntimeError("boom"))


@pytest.mark.unit
class TestFormatSize:
    @pytest.mark.parametrize(
        "size,expected",
        [
            (0, "0 B"),
            (1023, "1023 B"),
            (1024, "1.00 KB"),
            (1536, "1.50 KB"),
            (5 * 1024**3, "5.00 GB"),
        ],
    )
    def test_format_size(self, size, expected):
        assert format_size(size) == expected
