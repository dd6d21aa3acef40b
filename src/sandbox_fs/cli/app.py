"""CLI entry point for sandbox-fs."""

import logging
from pathlib import Path

import typer
from rich.markup import escape

from sandbox_fs import __version__
from sandbox_fs.cli.constants import ExitCodes
from sandbox_fs.cli.health import run_health_check
from sandbox_fs.cli.utils import build_roots_manager, get_console, setup_logging
from sandbox_fs.config import load_settings
from sandbox_fs.exceptions import ConfigurationError
from sandbox_fs.server import create_server

app = typer.Typer(help="sandbox-fs - Sandboxed filesystem MCP server")

console = get_console()

logger = logging.getLogger(__name__)


@app.command()
def main(
    directories: list[str] = typer.Argument(
        None, help="Allowed directories (default: discovered workspace root)"
    ),
    config: Path = typer.Option(
        None, "--config", help="Settings file (default: ~/.sandbox-fs/settings.json)"
    ),
    no_workspace: bool = typer.Option(
        False, "--no-workspace", help="Disable workspace root discovery"
    ),
    log_level: str = typer.Option(
        None, "--log-level", help="Log level (debug, info, warning, error, critical)"
    ),
    check: bool = typer.Option(
        False, "--check", help="Show configuration and allowed directories, then exit"
    ),
    version_flag: bool = typer.Option(False, "--version", help="Show version"),
) -> None:
    """Serve filesystem tools over MCP stdio, restricted to allowed directories.

    \b
    Examples:
        sandbox-fs ~/project                  # Allow one directory
        sandbox-fs ~/project ~/notes          # Allow several directories
        sandbox-fs                            # Use the discovered workspace root
        sandbox-fs --no-workspace             # Wait for roots from the client
        sandbox-fs ~/project --check          # Show effective configuration
    """
    if version_flag:
        console.print(f"sandbox-fs version {__version__}")
        return

    overrides: dict = {}
    if no_workspace:
        overrides.setdefault("filesystem", {})["workspace_mode"] = False
    if log_level:
        overrides.setdefault("logging", {})["level"] = log_level

    try:
        settings = load_settings(config, directories or None, overrides)
        if not check:
            setup_logging(settings.logging)
        roots = build_roots_manager(settings)
    except ConfigurationError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}", highlight=False)
        raise typer.Exit(ExitCodes.GENERAL_ERROR)

    if check:
        run_health_check(settings, roots, console)
        return

    server = create_server(settings, roots)
    root_list = ", ".join(roots.current()) or "(none, waiting for client roots)"
    logger.info(f"sandbox-fs {__version__} running on stdio, allowed directories: {root_list}")

    try:
        server.run("stdio")
    except KeyboardInterrupt:
        raise typer.Exit(ExitCodes.INTERRUPTED)
