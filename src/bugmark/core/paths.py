"""
Path codecs for the ``file`` field of a LocationFact.

Bookmarks either store absolute paths or paths relative to a workspace
folder, prefixed with that folder's name (``app/src/main.py``). The codec
is chosen by configuration and handed to whoever reads or writes facts.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, runtime_checkable


@runtime_checkable
class PathCodec(Protocol):
    """Converts between filesystem paths and the string stored in a fact."""

    def encode(self, path: Path | str) -> str:
        """Encode a filesystem path for storage."""
        ...

    def decode(self, stored: str) -> Path:
        """Decode a stored path back to a filesystem path."""
        ...


class AbsolutePathCodec:
    """Stores absolute POSIX-style paths unchanged."""

    def encode(self, path: Path | str) -> str:
        return Path(path).absolute().as_posix()

    def decode(self, stored: str) -> Path:
        return Path(stored)


class WorkspacePathCodec:
    """
    Stores paths relative to one of the workspace folders.

    The folder's directory name is kept as the first segment so multi-root
    workspaces stay unambiguous. Paths outside every folder fall back to
    absolute form.
    """

    def __init__(self, folders: list[Path]):
        self.folders = [Path(f).absolute() for f in folders]

    def encode(self, path: Path | str) -> str:
        target = Path(path).absolute()
        for folder in self.folders:
            try:
                rel = target.relative_to(folder)
            except ValueError:
                continue
            return (Path(folder.name) / rel).as_posix()
        return target.as_posix()

    def decode(self, stored: str) -> Path:
        candidate = Path(stored)
        if candidate.is_absolute():
            return candidate
        head, *rest = candidate.parts or ("",)
        for folder in self.folders:
            if folder.name == head:
                return folder.joinpath(*rest)
        return candidate


__all__ = ["PathCodec", "AbsolutePathCodec", "WorkspacePathCodec"]
