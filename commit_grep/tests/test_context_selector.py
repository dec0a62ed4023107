"""
Tests for match selection and grep-style context expansion.
"""

import time

import pytest

from commit_grep.modules.context_selector import (
    CONTEXT_BREAK,
    expand_context,
    line_matches,
    select_lines,
    visible_entries,
)
from commit_grep.modules.diff_model import Content, ContentType


def neutral(*texts):
    return [Content(text, ContentType.NEUTRAL) for text in texts]


def shown(mask):
    return {i for i, v in enumerate(mask) if v}


class TestExpandContext:
    """Visible mask computation."""

    def test_zero_context_is_exactly_the_matches(self):
        assert shown(expand_context(10, [2, 7], 0, 0)) == {2, 7}

    def test_windows_merge(self):
        assert shown(expand_context(10, [2, 4], 1, 1)) == {1, 2, 3, 4, 5}

    def test_asymmetric_context(self):
        assert shown(expand_context(10, [5], 2, 1)) == {3, 4, 5, 6}
        assert shown(expand_context(10, [5], 0, 3)) == {5, 6, 7, 8}

    def test_clamped_at_bounds(self):
        assert shown(expand_context(3, [0], 5, 5)) == {0, 1, 2}
        assert shown(expand_context(3, [2], 5, 0)) == {0, 1, 2}

    def test_no_matches(self):
        assert expand_context(4, [], 3, 3) == [False] * 4

    def test_empty_file(self):
        assert expand_context(0, [], 2, 2) == []

    def test_deep_budget_after_shallow_visit(self):
        """A line first reached with a small budget still propagates a larger one."""
        # match 3 reaches line 4 with after=0 only; match 4 reaches far beyond.
        assert shown(expand_context(12, [3, 4], 0, 4)) == {3, 4, 5, 6, 7, 8}

    def test_dense_matches_on_large_input(self):
        total = 50_000
        mask = expand_context(total, list(range(total)), 3, 3)
        assert all(mask)

    def test_dense_matches_with_whole_file_context(self):
        """Every line matching with context as long as the file stays linear."""
        total = 5_000
        start = time.perf_counter()
        mask = expand_context(total, list(range(total)), total, total)
        elapsed = time.perf_counter() - start

        assert all(mask)
        assert elapsed < 0.5

    def test_windows_meeting_on_one_line(self):
        # windows [3, 6] and [6, 9] meet at line 6.
        assert shown(expand_context(20, [5, 8], 2, 1)) == {3, 4, 5, 6, 7, 8, 9}

    def test_long_run_of_context(self):
        total = 50_000
        mask = expand_context(total, [total - 1], total, 0)
        assert all(mask)


class TestLineMatches:

    def test_neutral_lines_match_by_default(self):
        assert line_matches(Content("TODO later"), "TODO")

    def test_changed_only_skips_neutral(self):
        assert not line_matches(Content("TODO later"), "TODO", changed_only=True)
        assert line_matches(Content("TODO later", ContentType.ADDED), "TODO", changed_only=True)

    def test_case_sensitive_by_default(self):
        assert not line_matches(Content("todo"), "TODO")
        assert line_matches(Content("todo"), "TODO", ignore_case=True)

    def test_substring_not_word(self):
        assert line_matches(Content("ATODOS"), "TODO")


class TestSelectLines:

    def test_match_count_and_indices(self):
        lines = neutral("a", "x TODO", "b", "c", "TODO y", "d")
        selection = select_lines(lines, "TODO", 1, 0)

        assert selection.matched == (1, 4)
        assert selection.match_count == 2
        assert selection.visible_indices == [0, 1, 3, 4]

    def test_idempotent(self):
        lines = neutral("a", "x", "b", "x", "c", "d", "e", "x")
        first = select_lines(lines, "x", 1, 2)
        second = select_lines(lines, "x", 1, 2)
        assert first == second

    def test_negative_context_rejected(self):
        with pytest.raises(ValueError):
            select_lines(neutral("a"), "a", -1, 0)
        with pytest.raises(ValueError):
            select_lines(neutral("a"), "a", 0, -2)

    def test_simple_diff_scenario(self):
        lines = [
            Content("old line", ContentType.REMOVED),
            Content("new line", ContentType.ADDED),
            Content("context line", ContentType.NEUTRAL),
        ]
        selection = select_lines(lines, "new", 1, 0)

        assert selection.match_count == 1
        assert [lines[i].text for i in selection.visible_indices] == ["old line", "new line"]


class TestVisibleEntries:

    def test_break_between_distant_runs(self):
        lines = neutral("m1", "a", "b", "c", "m2")
        entries = visible_entries(lines, select_lines(lines, "m", 0, 0))
        assert entries == [lines[0], CONTEXT_BREAK, lines[4]]

    def test_no_break_for_adjacent_lines(self):
        lines = neutral("m1", "m2", "a")
        entries = visible_entries(lines, select_lines(lines, "m", 0, 0))
        assert CONTEXT_BREAK not in entries
        assert entries == lines[:2]

    def test_no_leading_or_trailing_break(self):
        lines = neutral("a", "b", "m", "c", "d")
        entries = visible_entries(lines, select_lines(lines, "m", 0, 0))
        assert entries == [lines[2]]

    def test_context_break_is_singleton(self):
        assert type(CONTEXT_BREAK)() is CONTEXT_BREAK
