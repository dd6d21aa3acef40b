"""Command-line interface for sandbox-fs."""

from sandbox_fs.cli.app import app

__all__ = ["app"]
