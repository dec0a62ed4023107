"""
commit-grep - Context Selector

Decides which lines of a Statement are shown: every line containing the
search string plus `before` / `after` lines of context around it, grep -B/-A
style. Overlapping windows merge into one continuous run.

Expansion keeps a per-line table of the best remaining budget and fills it
with one explicit pass per direction, so long files with dense matches never
recurse and every line is visited twice whatever the context size.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence, Tuple, Union

from .diff_model import Content, ContentType


class _ContextBreak:
    """Marker between two visible lines that are not adjacent in the file."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "CONTEXT_BREAK"


CONTEXT_BREAK = _ContextBreak()

RenderedEntry = Union[Content, _ContextBreak]


@dataclass(frozen=True)
class SelectionResult:
    visible: Tuple[bool, ...]
    matched: Tuple[int, ...]

    @property
    def match_count(self) -> int:
        return len(self.matched)

    @property
    def visible_indices(self) -> List[int]:
        return [i for i, shown in enumerate(self.visible) if shown]


def line_matches(
    line: Content,
    search: str,
    *,
    ignore_case: bool = False,
    changed_only: bool = False,
) -> bool:
    if changed_only and line.kind is ContentType.NEUTRAL:
        return False
    if ignore_case:
        return search.casefold() in line.text.casefold()
    return search in line.text


def _carry_budget(total: int, matches: Sequence[int], budget: int, order: range) -> List[int]:
    """
    Remaining context budget of every line for one direction.

    Walking `order`, each line keeps the larger of its own budget (a match
    starts with the full `budget`) and what its predecessor hands on minus
    one. A negative value means the line is out of reach.
    """
    remaining = [-1] * total
    for idx in matches:
        remaining[idx] = budget

    carry = -1
    for idx in order:
        carry = max(carry - 1, remaining[idx])
        remaining[idx] = carry
    return remaining


def expand_context(total: int, matches: Sequence[int], before: int, after: int) -> List[bool]:
    """
    Mark each match and its surrounding window visible.

    A line reached with budget b hands b - 1 on to its neighbour, so windows
    are clamped to [0, total) and overlapping windows simply meet. Leading
    context flows right to left, trailing context left to right; one linear
    pass each.
    """
    leading = _carry_budget(total, matches, before, range(total - 1, -1, -1))
    trailing = _carry_budget(total, matches, after, range(total))
    return [pre >= 0 or post >= 0 for pre, post in zip(leading, trailing)]


def select_lines(
    lines: Sequence[Content],
    search: str,
    before: int = 0,
    after: int = 0,
    *,
    ignore_case: bool = False,
    changed_only: bool = False,
) -> SelectionResult:
    """Compute the visible mask and the matching line indices for one file."""
    if before < 0 or after < 0:
        raise ValueError("context sizes must be non-negative")

    matched = tuple(
        idx
        for idx, line in enumerate(lines)
        if line_matches(line, search, ignore_case=ignore_case, changed_only=changed_only)
    )
    visible = expand_context(len(lines), matched, before, after)
    return SelectionResult(visible=tuple(visible), matched=matched)


def visible_entries(lines: Sequence[Content], selection: SelectionResult) -> List[RenderedEntry]:
    """Visible lines in file order, with CONTEXT_BREAK between non-adjacent runs."""
    entries: List[RenderedEntry] = []
    previous = None
    for idx in selection.visible_indices:
        if previous is not None and idx - previous > 1:
            entries.append(CONTEXT_BREAK)
        entries.append(lines[idx])
        previous = idx
    return entries
