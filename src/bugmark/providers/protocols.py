"""
Collaborator protocols.

The reconciliation core never talks to an editor or a VCS client directly;
it asks these interfaces for the data it needs.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class Cursor:
    """What the cursor provider reports for "mark this line"."""

    file: str  # encoded path
    line: int  # 0-indexed
    text: str


@dataclass(frozen=True)
class Breakpoint:
    """A source breakpoint, identified by encoded file and 0-indexed line."""

    file: str
    line: int


@dataclass(frozen=True)
class BreakpointChange:
    """Notification payload sent to breakpoint-store subscribers."""

    added: tuple[Breakpoint, ...] = ()
    removed: tuple[Breakpoint, ...] = ()


@runtime_checkable
class TextDocument(Protocol):
    """Read access to the current text of one file."""

    @property
    def line_count(self) -> int:
        """Number of lines in the document."""
        ...

    def line_at(self, index: int) -> str:
        """Text of the 0-indexed line, without its line break."""
        ...


@runtime_checkable
class DocumentProvider(Protocol):
    """Opens documents by encoded file identifier."""

    async def open(self, file: str) -> TextDocument:
        """Open a document; raises ExternalUnavailable if it cannot be read."""
        ...


@runtime_checkable
class CursorProvider(Protocol):
    """Reports the active cursor position."""

    async def capture(self) -> Cursor:
        """Return the file, line and line text under the cursor."""
        ...


@runtime_checkable
class BreakpointStore(Protocol):
    """The external set of active breakpoints."""

    def add(self, breakpoint: Breakpoint) -> None:
        """Add a breakpoint (no-op when already present)."""
        ...

    def remove(self, breakpoint: Breakpoint) -> None:
        """Remove a breakpoint; raises NotFoundError when absent."""
        ...

    def __contains__(self, breakpoint: object) -> bool: ...

    def __iter__(self) -> Iterator[Breakpoint]: ...

    def subscribe(self, callback: Callable[[BreakpointChange], None]) -> Callable[[], None]:
        """Register a change listener; returns a function that unsubscribes it."""
        ...


@runtime_checkable
class VersionControlProvider(Protocol):
    """
    Revision lookups for one file.

    Every method raises ExternalUnavailable when the repository, revision or
    path cannot be resolved.
    """

    async def has_repository(self, file: str) -> bool:
        """Whether ``file`` lives in a repository at all."""
        ...

    async def has_revision(self, file: str, revision: str) -> bool:
        """Whether ``revision`` exists in the repository holding ``file``."""
        ...

    async def head(self, file: str) -> str:
        """Current head commit id."""
        ...

    async def diff(self, file: str, revision: str) -> str:
        """Unified diff of ``file`` from ``revision`` to head."""
        ...

    async def renamed_path(self, file: str, revision: str) -> str | None:
        """New encoded path if ``file`` was renamed since ``revision``."""
        ...

    async def is_dirty(self, file: str) -> bool:
        """Whether the working tree has uncommitted changes."""
        ...

    async def current_branch(self, file: str) -> str | None:
        """Checked-out branch name, or None when detached."""
        ...


__all__ = [
    "Breakpoint",
    "BreakpointChange",
    "BreakpointStore",
    "Cursor",
    "CursorProvider",
    "DocumentProvider",
    "TextDocument",
    "VersionControlProvider",
]
