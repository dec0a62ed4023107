"""
Tests for the LINES and CHUNKS rendering strategies.
"""

import pytest

from commit_grep.modules.context_selector import select_lines
from commit_grep.modules.diff_parser import parse_diff
from commit_grep.modules.rendering import StatementFormat, render_statement


class TestLinesFormat:

    def test_simple_diff_with_leading_context(self, simple_diff):
        statement = parse_diff(simple_diff).statements[0]
        selection = select_lines(statement.lines, "new", 1, 0)

        text, visible = render_statement(statement, selection, StatementFormat.LINES)

        assert text == "-old line\n+new line"
        assert [line.text for line in visible] == ["old line", "new line"]

    def test_break_marker_between_runs(self, two_file_diff):
        statement = parse_diff(two_file_diff).statements[0]
        selection = select_lines(statement.lines, "token", 0, 0)

        text, _ = render_statement(statement, selection)

        assert text.splitlines() == [
            "-    token = request.token",
            "+    token = request.headers.get('token')",
            "--",
            "+        self.token = None",
        ]

    def test_no_matches_renders_nothing(self, simple_diff):
        statement = parse_diff(simple_diff).statements[0]
        text, visible = render_statement(statement, select_lines(statement.lines, "absent"))
        assert text == ""
        assert visible == []


class TestChunksFormat:

    def test_only_matching_hunks_shown_whole(self, two_file_diff):
        statement = parse_diff(two_file_diff).statements[0]
        selection = select_lines(statement.lines, "close", 0, 0)

        text, visible = render_statement(statement, selection, StatementFormat.CHUNKS)

        assert text.splitlines() == [
            "@@ -40,2 +40,3 @@",
            "     def close(self):",
            "+        self.token = None",
            "         self.open = False",
        ]
        assert len(visible) == 3

    def test_every_matching_hunk_listed(self, two_file_diff):
        statement = parse_diff(two_file_diff).statements[0]
        selection = select_lines(statement.lines, "token", 0, 0)

        text, _ = render_statement(statement, selection, StatementFormat.CHUNKS)

        headers = [line for line in text.splitlines() if line.startswith("@@")]
        assert headers == ["@@ -10,4 +10,4 @@", "@@ -40,2 +40,3 @@"]


def test_unknown_format_rejected(simple_diff):
    statement = parse_diff(simple_diff).statements[0]
    with pytest.raises(ValueError):
        render_statement(statement, select_lines(statement.lines, "new"), "table")
