"""Tests for bugmark.core.fuzzy — diamond search with edit distance."""

from __future__ import annotations

import pytest

from bugmark.core.fuzzy import locate_line, search_order
from bugmark.providers.documents import LinesDocument


class TestSearchOrder:
    def test_diamond_order(self) -> None:
        assert search_order(10, 3) == [10, 11, 9, 12, 8]

    def test_zero_radius_examines_nothing(self) -> None:
        assert search_order(10, 0) == []

    def test_radius_one_is_candidate_only(self) -> None:
        assert search_order(4, 1) == [4]


class TestLocateLine:
    def test_exact_match_at_candidate(self) -> None:
        doc = LinesDocument(["a", "b", "target", "c"])
        match = locate_line(doc, 2, "target", 5)
        assert match.found
        assert match.line == 2
        assert match.distance == 0

    def test_line_moved_down(self) -> None:
        doc = LinesDocument(["x", "y", "z", "q", "w", "return value", "e"])
        match = locate_line(doc, 3, "return value", 5)
        assert match.found
        assert match.line == 5

    def test_equal_candidates_prefer_below(self) -> None:
        doc = LinesDocument(["0", "1", "2", "3", "foo", "zzz", "foo"])
        match = locate_line(doc, 5, "foo", 5)
        assert match.line == 6

    def test_equal_distance_first_examined_wins(self) -> None:
        doc = LinesDocument(["0", "1", "2", "3", "abcY", "-----", "abcX"])
        match = locate_line(doc, 5, "abcd", 5)
        assert match.found
        assert match.line == 6
        assert match.distance == 1

    def test_lower_distance_beats_nearer_line(self) -> None:
        doc = LinesDocument(["fooX", "", "foo"])
        match = locate_line(doc, 0, "foo", 5)
        assert match.line == 2
        assert match.distance == 0

    def test_edited_line_still_found(self) -> None:
        doc = LinesDocument(["def handler(request):", "    return response(request)"])
        match = locate_line(doc, 0, "    return response(req)", 5)
        assert match.found
        assert match.line == 1

    def test_not_found_keeps_candidate(self) -> None:
        doc = LinesDocument(["xyz"] * 10)
        match = locate_line(doc, 4, "abc", 5)
        assert not match.found
        assert match.line == 4

    def test_completely_different_line_is_not_a_match(self) -> None:
        doc = LinesDocument(["abcd"])
        assert not locate_line(doc, 0, "wxyz", 3).found

    def test_empty_content_matches_empty_line(self) -> None:
        doc = LinesDocument(["a", "", "b"])
        match = locate_line(doc, 0, "", 3)
        assert match.found
        assert match.line == 1

    def test_empty_content_without_empty_line(self) -> None:
        doc = LinesDocument(["a", "b"])
        assert not locate_line(doc, 0, "", 3).found

    def test_radius_zero_never_finds(self) -> None:
        doc = LinesDocument(["same"])
        match = locate_line(doc, 0, "same", 0)
        assert not match.found
        assert match.line == 0

    def test_out_of_range_lines_skipped(self) -> None:
        doc = LinesDocument(["a", "b", "wanted"])
        match = locate_line(doc, 4, "wanted", 3)
        assert match.found
        assert match.line == 2

    def test_outside_radius_not_found(self) -> None:
        doc = LinesDocument(["wanted"] + ["-"] * 10)
        assert not locate_line(doc, 8, "wanted", 3).found

    def test_negative_radius_rejected(self) -> None:
        with pytest.raises(ValueError):
            locate_line(LinesDocument(["a"]), 0, "a", -1)
