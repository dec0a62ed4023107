"""
commit-grep - Diff Change Model

Structured form of one `git diff` invocation:

- Content: one hunk body line tagged Added/Removed/Neutral
- Chunk: one `@@ ... @@` hunk with its ranges and lines
- Statement: one file's diff, all hunks flattened in order
- Program: every Statement of a diff plus parse diagnostics

These objects live only for the duration of a single parse + match call.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Tuple


class ContentType(str, Enum):
    """Kind of a hunk body line."""

    ADDED = "added"
    REMOVED = "removed"
    NEUTRAL = "neutral"

    @property
    def prefix(self) -> str:
        """The unified diff marker for this line kind."""
        return _PREFIXES[self]


_PREFIXES = {
    ContentType.ADDED: "+",
    ContentType.REMOVED: "-",
    ContentType.NEUTRAL: " ",
}


@dataclass(frozen=True)
class Content:
    text: str
    kind: ContentType = ContentType.NEUTRAL

    def to_diff_line(self) -> str:
        return f"{self.kind.prefix}{self.text}"


@dataclass
class Chunk:
    """A single hunk: `@@ -removed_start,removed_count +added_start,added_count @@`."""

    removed_start: int
    removed_count: int
    added_start: int
    added_count: int
    lines: List[Content] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.removed_count < 0 or self.added_count < 0:
            raise ValueError("hunk line counts must be non-negative")

    @property
    def is_empty(self) -> bool:
        return not self.lines

    def header(self) -> str:
        """Re-serialize the hunk header."""
        return (
            f"@@ -{self.removed_start},{self.removed_count} "
            f"+{self.added_start},{self.added_count} @@"
        )


@dataclass
class Statement:
    """All hunks of one file."""

    path_a: str
    path_b: str
    chunks: List[Chunk] = field(default_factory=list)

    @property
    def lines(self) -> List[Content]:
        return [line for chunk in self.chunks for line in chunk.lines]

    def chunk_spans(self) -> List[Tuple[int, int]]:
        """(start, end) indices of each chunk within `lines`, end exclusive."""
        spans = []
        offset = 0
        for chunk in self.chunks:
            spans.append((offset, offset + len(chunk.lines)))
            offset += len(chunk.lines)
        return spans

    @property
    def header(self) -> str:
        return f"diff: {self.path_a} {self.path_b}"


@dataclass
class Program:
    statements: List[Statement] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors
