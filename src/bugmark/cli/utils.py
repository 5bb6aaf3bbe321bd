"""
bugmark CLI utilities.

Shared helpers used by the command modules.
"""

import platform
from pathlib import Path
from typing import NoReturn

import typer
from rich.console import Console

from bugmark._version import get_version
from bugmark.core.config import BugmarkSettings, load_settings
from bugmark.core.service import BookmarkService

console = Console()


def version_callback(value: bool) -> None:
    """Display version and environment information."""
    if value:
        typer.echo(f"bugmark version {get_version()}")
        typer.echo(f"  Python:   {platform.python_implementation()} {platform.python_version()}")
        typer.echo(f"  Platform: {platform.system()} {platform.release()}")
        raise typer.Exit()


def resolve_root(root: str | None) -> Path:
    return Path(root or ".").absolute()


def open_service(root: str | None) -> tuple[BugmarkSettings, BookmarkService]:
    """Load settings for the workspace and build a service on them."""
    settings = load_settings(resolve_root(root))
    return settings, BookmarkService.from_settings(settings)


def fail(message: str) -> NoReturn:
    """Print an error and exit with status 1."""
    console.print(f"[red]Error: {message}[/red]")
    raise typer.Exit(code=1)
