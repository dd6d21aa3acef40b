"""Configuration check for the sandbox-fs CLI (``--check``)."""

import platform

from rich.console import Console
from rich.table import Table

from sandbox_fs import __version__
from sandbox_fs.cli.utils import get_console
from sandbox_fs.config.constants import ALL_TOOLS
from sandbox_fs.config.schema import ServerSettings
from sandbox_fs.roots import RootsManager


def run_health_check(
    settings: ServerSettings, roots: RootsManager, console: Console | None = None
) -> None:
    """Print the effective configuration and the resolved allowed directories."""
    if console is None:
        console = get_console()

    fs = settings.filesystem

    table = Table(title="sandbox-fs Configuration", show_header=True, header_style="bold cyan")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="white")

    table.add_row("Version", __version__)
    table.add_row("Python", platform.python_version())
    table.add_row("Workspace Mode", "Enabled" if fs.workspace_mode else "Disabled")
    table.add_row("Discovery Start", str(settings.discovery_start()))
    table.add_row("Log Level", settings.logging.level.upper())
    table.add_row("Log File", settings.logging.file or "stderr")

    if len(fs.enabled_tools) == len(ALL_TOOLS):
        table.add_row("Enabled Tools", f"all ({len(ALL_TOOLS)})")
    else:
        table.add_row("Enabled Tools", ", ".join(fs.enabled_tools) or "none")

    console.print()
    console.print(table)
    console.print()

    console.print("[bold]Allowed directories:[/bold]")
    root_set = roots.current()
    if root_set:
        for root in root_set:
            console.print(f"  [green]◉[/green] {root}", highlight=False)
    else:
        console.print("  [yellow]⚠[/yellow]  none (waiting for client roots)")
    console.print()
