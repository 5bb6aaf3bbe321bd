"""
bugmark - durable, hierarchical bookmarks for source lines.

Bookmarks follow their line across edits and commits by translating
through diffs and fuzzy-matching the remembered text.
"""

from __future__ import annotations

from ._version import get_version
from .core.errors import (
    BugmarkError,
    ConfigError,
    ExternalUnavailable,
    NotFoundError,
    StructuralError,
)
from .core.models import LocationFact

__version__ = get_version()

__all__ = [
    "__version__",
    "LocationFact",
    "BugmarkError",
    "StructuralError",
    "NotFoundError",
    "ExternalUnavailable",
    "ConfigError",
]
