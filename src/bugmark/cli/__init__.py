"""
bugmark CLI.

- bookmarks.py: mark/list/goto/rm/mv/reconcile commands
- utils.py: shared utilities
"""

import logging
import sys

import typer

from bugmark.cli.bookmarks import (
    goto_command,
    list_command,
    mark_command,
    reconcile_command,
    remove_command,
    rename_command,
)
from bugmark.cli.utils import version_callback

app = typer.Typer(
    name="bugmark",
    help="Durable, hierarchical bookmarks for source lines.",
    no_args_is_help=True,
    add_completion=False,
)


@app.callback()
def main_callback(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and environment information",
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Log debug output to stderr"),
) -> None:
    """bugmark main callback for global options."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
            stream=sys.stderr,
        )


app.command(name="mark")(mark_command)
app.command(name="list")(list_command)
app.command(name="goto")(goto_command)
app.command(name="rm")(remove_command)
app.command(name="mv")(rename_command)
app.command(name="reconcile")(reconcile_command)


def main(argv: list[str] | None = None) -> None:
    app(args=argv, standalone_mode=True)


__all__ = ["app", "main"]
