"""Allow running as ``python -m sandbox_fs``."""

from sandbox_fs.cli.app import app

if __name__ == "__main__":
    app()
