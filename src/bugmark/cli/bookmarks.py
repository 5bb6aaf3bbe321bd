"""
Bookmark CLI commands.

Commands for marking lines, listing the bookmark tree, and following
bookmarks to their current location.
"""

import asyncio
from pathlib import Path

import typer
from rich.markup import escape
from rich.tree import Tree

from bugmark.core.errors import BugmarkError
from bugmark.core.tree import BookmarkNode, FolderNode, RecordNode
from bugmark.providers.documents import FileDocumentProvider, StaticCursorProvider

from .utils import console, fail, open_service

RootOption = typer.Option(None, "--root", "-r", help="Workspace root (default: current)")


def mark_command(
    file: Path = typer.Argument(..., help="Source file"),
    line: int = typer.Argument(..., min=1, help="Line number (1-based)"),
    name: str = typer.Argument(..., help="Bookmark path, folders split with /"),
    root: str | None = RootOption,
) -> None:
    """Bookmark a source line."""
    try:
        settings, service = open_service(root)
        encoded = service.codec.encode(file if file.is_absolute() else settings.root / file)
        service.cursor = StaticCursorProvider(
            FileDocumentProvider(service.codec), encoded, line - 1
        )
        item = asyncio.run(service.mark_line(name))
    except BugmarkError as e:
        fail(str(e))
    console.print(f"[green]✓ Marked {escape(item.path)}[/green] {escape(encoded)}:{line}")


def _render(node: RecordNode, branch: Tree) -> None:
    for child in node.children if isinstance(node, FolderNode) else []:
        if isinstance(child, BookmarkNode):
            fact = child.fact
            label = (
                f"{escape(child.label)}  [dim]{escape(fact.file)}:{fact.lineno + 1}[/dim]"
                f"  {escape(fact.content.strip())}"
            )
            if fact.is_stale:
                label += "  [red](stale)[/red]"
            branch.add(label)
        else:
            _render(child, branch.add(f"[bold]{escape(child.label)}/[/bold]"))


def list_command(root: str | None = RootOption) -> None:
    """Show the bookmark tree."""
    try:
        _, service = open_service(root)
    except BugmarkError as e:
        fail(str(e))
    if not service.root.children:
        typer.echo("No bookmarks yet. Use `bugmark mark FILE LINE NAME` to add one.")
        return
    tree = Tree("[bold]bookmarks[/bold]")
    _render(service.root, tree)
    console.print(tree)


def goto_command(
    name: str = typer.Argument(..., help="Bookmark path"),
    root: str | None = RootOption,
) -> None:
    """Print where a bookmark points now (file:line and the line text)."""
    try:
        _, service = open_service(root)
        node = service.find(name)
        if not isinstance(node, BookmarkNode):
            fail(f"'{name}' is a folder, not a bookmark")
        fact = asyncio.run(service.goto(node))
    except BugmarkError as e:
        fail(str(e))
    if fact is None:
        fail(f"'{name}' was removed")
    typer.echo(f"{fact.file}:{fact.lineno + 1}")
    typer.echo(fact.content)
    if fact.is_stale:
        console.print("[yellow]Line not found nearby; showing last known position[/yellow]")


def remove_command(
    name: str = typer.Argument(..., help="Bookmark or folder path"),
    root: str | None = RootOption,
) -> None:
    """Remove a bookmark or a whole folder."""
    try:
        _, service = open_service(root)
        service.remove_item(service.find(name))
    except BugmarkError as e:
        fail(str(e))
    console.print(f"[green]✓ Removed {escape(name)}[/green]")


def rename_command(
    name: str = typer.Argument(..., help="Current path"),
    new_name: str = typer.Argument(..., help="New path"),
    root: str | None = RootOption,
) -> None:
    """Rename or move a bookmark or folder."""
    try:
        _, service = open_service(root)
        service.rename_item(service.find(name), new_name)
    except BugmarkError as e:
        fail(str(e))
    console.print(f"[green]✓ Renamed {escape(name)} → {escape(new_name)}[/green]")


def reconcile_command(root: str | None = RootOption) -> None:
    """Re-anchor every bookmark on the current code."""
    try:
        _, service = open_service(root)
        summary = asyncio.run(service.reconcile_all())
    except BugmarkError as e:
        fail(str(e))
    console.print(
        f"Checked {summary.total} bookmark(s): "
        f"[green]{len(summary.updated)} updated[/green], "
        f"[red]{len(summary.stale)} stale[/red]"
    )
    for node in summary.stale:
        console.print(f"  [red]✗[/red] {escape(node.path)}")
