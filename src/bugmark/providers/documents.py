"""Filesystem-backed documents and cursors."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence

from bugmark.core.errors import ErrorContext, ExternalUnavailable
from bugmark.core.paths import PathCodec

from .protocols import Cursor

logger = logging.getLogger(__name__)


class LinesDocument:
    """A document held as a list of lines."""

    def __init__(self, lines: Sequence[str]):
        self.lines = list(lines)

    @classmethod
    def from_text(cls, text: str) -> LinesDocument:
        return cls(text.splitlines())

    @property
    def line_count(self) -> int:
        return len(self.lines)

    def line_at(self, index: int) -> str:
        if not 0 <= index < len(self.lines):
            raise IndexError(f"line {index} out of range (0..{len(self.lines) - 1})")
        return self.lines[index]


class FileDocumentProvider:
    """Reads documents from disk, decoding stored paths through a codec."""

    def __init__(self, codec: PathCodec, encoding: str = "utf-8"):
        self.codec = codec
        self.encoding = encoding

    def _read(self, file: str) -> LinesDocument:
        path = self.codec.decode(file)
        try:
            text = path.read_text(encoding=self.encoding, errors="replace")
        except OSError as e:
            raise ExternalUnavailable(f"cannot read document: {e}", ErrorContext(file=file)) from e
        return LinesDocument.from_text(text)

    async def open(self, file: str) -> LinesDocument:
        return await asyncio.to_thread(self._read, file)


class StaticCursorProvider:
    """A cursor fixed at one line of a file, as given on the command line."""

    def __init__(self, documents: FileDocumentProvider, file: str, line: int):
        self.documents = documents
        self.file = file
        self.line = line

    async def capture(self) -> Cursor:
        document = await self.documents.open(self.file)
        if not 0 <= self.line < document.line_count:
            raise ExternalUnavailable(
                f"line {self.line + 1} is past the end of the file ({document.line_count} lines)",
                ErrorContext(file=self.file),
            )
        return Cursor(self.file, self.line, document.line_at(self.line))


__all__ = ["FileDocumentProvider", "LinesDocument", "StaticCursorProvider"]
