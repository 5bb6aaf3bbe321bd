"""
Fuzzy line search around a candidate position.

Lines are examined in a diamond around the candidate (``+i`` before ``-i``,
nearer offsets first) and scored by Levenshtein distance against the
remembered content. The first line with the lowest distance wins.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from rapidfuzz.distance import Levenshtein

if TYPE_CHECKING:
    from bugmark.providers.protocols import TextDocument


@dataclass(frozen=True)
class FuzzyMatch:
    """Outcome of a search. ``line`` is the candidate itself when not found."""

    line: int
    distance: int
    found: bool


def search_order(candidate: int, radius: int) -> list[int]:
    """Line numbers in the order they are examined (may include out-of-range lines)."""
    order: list[int] = []
    for i in range(radius):
        order.append(candidate + i)
        if i:
            order.append(candidate - i)
    return order


def locate_line(document: TextDocument, candidate: int, content: str, radius: int) -> FuzzyMatch:
    """
    Find the line nearest ``candidate`` that best matches ``content``.

    A match only counts when its distance is strictly below ``len(content)``,
    i.e. better than replacing the whole line. Empty content can still match
    an empty line exactly.

    Args:
        document: Current text of the file
        candidate: 0-indexed line to search around
        content: Remembered line text
        radius: Number of offsets examined on each side; 0 examines nothing

    Returns:
        FuzzyMatch with ``found`` set when the search beat the baseline
    """
    if radius < 0:
        raise ValueError(f"search radius must be non-negative, got {radius}")

    best_line = candidate
    best_distance = len(content)
    found = False

    for lineno in search_order(candidate, radius):
        if not 0 <= lineno < document.line_count:
            continue
        distance = Levenshtein.distance(
            content, document.line_at(lineno), score_cutoff=best_distance
        )
        if distance < best_distance or (distance == 0 and not found):
            best_line, best_distance, found = lineno, distance, True
            if distance == 0:
                break

    if not found:
        return FuzzyMatch(line=candidate, distance=best_distance, found=False)
    return FuzzyMatch(line=best_line, distance=best_distance, found=True)


__all__ = ["FuzzyMatch", "locate_line", "search_order"]
