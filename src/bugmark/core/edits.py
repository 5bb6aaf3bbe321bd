"""
Keeping facts in step with live document edits and file renames.

Edits are reported as replaced ranges. A fact's line moves when text is
inserted or removed above it; when the edit touches the line itself the fact
is clamped into the replacement and left for the next reconciliation to
refine.
"""

from dataclasses import dataclass

from .models import LocationFact


@dataclass(frozen=True)
class TextChange:
    """
    Replacement of the range ``(start_line, start_character)`` to
    ``(end_line, end_character)`` with ``text``. Positions are 0-indexed.
    """

    start_line: int
    end_line: int
    text: str
    start_character: int = 0
    end_character: int = 0

    @property
    def added_lines(self) -> int:
        return self.text.count("\n")

    @property
    def line_delta(self) -> int:
        return self.added_lines - (self.end_line - self.start_line)

    def ends_before(self, lineno: int) -> bool:
        """True when the whole range lies before the first character of ``lineno``."""
        return self.end_line < lineno or (self.end_line == lineno and self.end_character == 0)


def apply_change(fact: LocationFact, change: TextChange) -> bool:
    """
    Move ``fact`` to account for one edit in its file.

    Returns:
        True if ``fact.lineno`` changed
    """
    if change.ends_before(fact.lineno):
        if change.line_delta == 0:
            return False
        fact.lineno = max(fact.lineno + change.line_delta, 0)
        return True

    if change.start_line > fact.lineno:
        return False

    # The edit rewrote part of this line
    clamped = min(fact.lineno, change.start_line + change.added_lines)
    if clamped == fact.lineno:
        return False
    fact.lineno = clamped
    return True


def apply_rename(fact: LocationFact, old: str, new: str) -> bool:
    """
    Rewrite ``fact.file`` when it, or a directory containing it, was renamed.

    Args:
        old: Encoded path before the rename
        new: Encoded path after the rename
    """
    if fact.file == old:
        fact.file = new
        return True
    prefix = old.rstrip("/") + "/"
    if fact.file.startswith(prefix):
        fact.file = new.rstrip("/") + "/" + fact.file[len(prefix) :]
        return True
    return False


__all__ = ["TextChange", "apply_change", "apply_rename"]
