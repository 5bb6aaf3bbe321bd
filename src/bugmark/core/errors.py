"""
Error types for bookmark storage and location reconciliation.
"""

from dataclasses import dataclass


class BugmarkError(Exception):
    """Base exception for all bugmark errors."""

    def __init__(self, message: str, context: "ErrorContext | None" = None):
        self.message = message
        self.context = context
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format error message with context if available."""
        if self.context:
            return f"{self.context.format()}: {self.message}"
        return self.message


class StructuralError(BugmarkError):
    """
    Raised when the record tree would become invalid.

    Examples:
    - Inserting below a bookmark as if it were a folder
    - Two siblings with the same label
    - Removing the root
    - Malformed persisted bookmark data
    """

    pass


class NotFoundError(BugmarkError):
    """
    Raised when removing a breakpoint that is not present.

    Callers treat this as a no-op.
    """

    pass


class ExternalUnavailable(BugmarkError):
    """
    Raised when a revision, repository or document cannot be resolved.

    Reconciliation degrades to pass-through when it sees this.
    """

    pass


class ConfigError(BugmarkError):
    """Raised when bugmark.toml cannot be read or holds invalid values."""

    pass


@dataclass
class ErrorContext:
    """
    Where in the bookmark tree (and source) an error occurred.

    Attributes:
        path: Slash-joined bookmark path, if known
        file: Encoded source file of the bookmark, if known
        line: 0-indexed source line, if known
    """

    path: str | None = None
    file: str | None = None
    line: int | None = None

    def format(self) -> str:
        """
        Format error context as a human-readable string.

        Returns:
            Formatted string like: "bookmark 'a/b' (src/x.py:12)"
        """
        parts = []
        if self.path is not None:
            parts.append(f"bookmark '{self.path}'")
        if self.file is not None:
            location = self.file if self.line is None else f"{self.file}:{self.line + 1}"
            parts.append(f"({location})" if parts else location)
        return " ".join(parts) or "<unknown>"


def make_structural_error(message: str, path: str | None = None) -> StructuralError:
    """
    Helper to create a StructuralError pointing at a bookmark path.

    Args:
        message: Error description
        path: Optional slash-joined bookmark path

    Returns:
        StructuralError with context if a path was given
    """
    if path is not None:
        return StructuralError(message, ErrorContext(path=path))
    return StructuralError(message)


__all__ = [
    "BugmarkError",
    "StructuralError",
    "NotFoundError",
    "ExternalUnavailable",
    "ConfigError",
    "ErrorContext",
    "make_structural_error",
]
