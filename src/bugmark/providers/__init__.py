"""Collaborators the core relies on: documents, breakpoints, version control."""

from .breakpoints import InMemoryBreakpointStore
from .documents import FileDocumentProvider, LinesDocument, StaticCursorProvider
from .git import GitProvider
from .protocols import (
    Breakpoint,
    BreakpointChange,
    BreakpointStore,
    Cursor,
    CursorProvider,
    DocumentProvider,
    TextDocument,
    VersionControlProvider,
)

__all__ = [
    "Breakpoint",
    "BreakpointChange",
    "BreakpointStore",
    "Cursor",
    "CursorProvider",
    "DocumentProvider",
    "FileDocumentProvider",
    "GitProvider",
    "InMemoryBreakpointStore",
    "LinesDocument",
    "StaticCursorProvider",
    "TextDocument",
    "VersionControlProvider",
]
