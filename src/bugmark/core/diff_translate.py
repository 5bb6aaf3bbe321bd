"""
Line translation across revisions using unified-diff hunks.

Given ``git diff <old> HEAD -- file`` output and a line number valid in the
old revision, predict where that line lives at HEAD. Line numbers here use the
diff's own 1-based numbering.
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass

HUNK_HEADER_RE = re.compile(r"^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@")


@dataclass(frozen=True)
class Hunk:
    """One ``@@ -a,b +c,d @@`` block and its body rows."""

    start_a: int
    count_a: int
    start_b: int
    count_b: int
    rows: tuple[str, ...] = ()

    @property
    def old_begin(self) -> int:
        # A zero-length side names the line *before* the change
        return self.start_a if self.count_a else self.start_a + 1

    @property
    def new_begin(self) -> int:
        return self.start_b if self.count_b else self.start_b + 1

    @property
    def shift(self) -> int:
        return self.count_b - self.count_a

    def covers(self, line: int) -> bool:
        return self.old_begin <= line < self.old_begin + self.count_a

    def walk_to(self, line: int) -> int:
        """
        Follow the body rows until the old-side row ``line`` is consumed.

        Insertions advance only the new side, deletions only the old side.
        A deleted target lands on the last surviving row before it.
        """
        remaining = line - self.old_begin + 1
        position = self.new_begin - 1
        for row in self.rows:
            if row.startswith("+"):
                position += 1
                continue
            if not row.startswith("-"):
                position += 1
            remaining -= 1
            if remaining == 0:
                break
        return position


def parse_hunks(diff_text: str) -> Iterator[Hunk]:
    """
    Yield hunks in file order.

    Body rows are collected by count from the header, so removed lines that
    happen to start with ``--`` are never mistaken for file headers.
    """
    lines = diff_text.splitlines()
    i = 0
    while i < len(lines):
        match = HUNK_HEADER_RE.match(lines[i])
        i += 1
        if not match:
            continue

        start_a = int(match.group(1))
        count_a = int(match.group(2)) if match.group(2) else 1
        start_b = int(match.group(3))
        count_b = int(match.group(4)) if match.group(4) else 1

        rows: list[str] = []
        old_seen = new_seen = 0
        while i < len(lines) and (old_seen < count_a or new_seen < count_b):
            row = lines[i]
            if row.startswith("\\"):
                # "\ No newline at end of file"
                i += 1
                continue
            if HUNK_HEADER_RE.match(row):
                break
            if row.startswith("+"):
                new_seen += 1
            elif row.startswith("-"):
                old_seen += 1
            else:
                old_seen += 1
                new_seen += 1
            rows.append(row)
            i += 1

        yield Hunk(start_a, count_a, start_b, count_b, tuple(rows))


def translate_line(diff_text: str | None, line: int) -> int:
    """
    Map ``line`` (1-based, old side) to its predicted 1-based position at HEAD.

    Args:
        diff_text: Unified diff from the old revision to HEAD for one file
        line: Line number valid at the old revision

    Returns:
        The translated line; ``line`` itself when there is no diff
    """
    if not diff_text:
        return line

    shift = 0
    for hunk in parse_hunks(diff_text):
        if line < hunk.old_begin:
            break
        if hunk.covers(line):
            return hunk.walk_to(line)
        shift += hunk.shift
    return line + shift


__all__ = ["Hunk", "HUNK_HEADER_RE", "parse_hunks", "translate_line"]
