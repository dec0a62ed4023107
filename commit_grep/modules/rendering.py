"""
commit-grep - Statement Rendering Strategies

Two ways to show a file's matches, picked by a closed enum:

- LINES: only the selected lines, with `--` where context breaks
- CHUNKS: every hunk that holds a match, whole, under its `@@` header
"""

from __future__ import annotations

from enum import Enum
from typing import List, Tuple

from .context_selector import CONTEXT_BREAK, SelectionResult, visible_entries
from .diff_model import Content, Statement

CONTEXT_BREAK_LINE = "--"


class StatementFormat(str, Enum):
    LINES = "lines"
    CHUNKS = "chunks"


def _render_lines(statement: Statement, selection: SelectionResult) -> Tuple[str, List[Content]]:
    out: List[str] = []
    shown: List[Content] = []
    for entry in visible_entries(statement.lines, selection):
        if entry is CONTEXT_BREAK:
            out.append(CONTEXT_BREAK_LINE)
        else:
            out.append(entry.to_diff_line())
            shown.append(entry)
    return "\n".join(out), shown


def _render_chunks(statement: Statement, selection: SelectionResult) -> Tuple[str, List[Content]]:
    out: List[str] = []
    shown: List[Content] = []
    matched = set(selection.matched)
    for chunk, (start, end) in zip(statement.chunks, statement.chunk_spans()):
        if not any(start <= idx < end for idx in matched):
            continue
        out.append(chunk.header())
        out.extend(line.to_diff_line() for line in chunk.lines)
        shown.extend(chunk.lines)
    return "\n".join(out), shown


def render_statement(
    statement: Statement,
    selection: SelectionResult,
    fmt: StatementFormat = StatementFormat.LINES,
) -> Tuple[str, List[Content]]:
    """Return (rendered text, lines shown) for one file."""
    if fmt is StatementFormat.LINES:
        return _render_lines(statement, selection)
    if fmt is StatementFormat.CHUNKS:
        return _render_chunks(statement, selection)
    raise ValueError(f"Unknown statement format: {fmt!r}")
