"""
commit-grep - Error Types

Every failure a single commit can hit while being searched. The aggregator
catches these per commit and turns them into failed results, so none of them
ever aborts a whole history search.
"""

from __future__ import annotations

from typing import Optional


class CommitGrepError(RuntimeError):
    """Base class for all commit-grep failures."""

    kind = "error"


class TokenizeError(CommitGrepError):
    """Raw diff bytes could not be decoded into tokens."""

    kind = "tokenize"

    def __init__(self, message: str, offset: int = 0):
        super().__init__(f"{message} (byte offset {offset})")
        self.offset = offset


class ParseError(CommitGrepError):
    """The token stream violates the unified diff grammar."""

    kind = "parse"

    def __init__(self, message: str, line: Optional[int] = None):
        if line is not None:
            message = f"line {line}: {message}"
        super().__init__(message)
        self.line = line


class UnexpectedToken(ParseError):
    kind = "unexpected_token"

    def __init__(self, expected: str, found: str, line: Optional[int] = None):
        super().__init__(f"expected {expected}, found {found!r}", line)
        self.expected = expected
        self.found = found


class InvalidInteger(ParseError):
    kind = "invalid_integer"


class IntegerOverflow(ParseError):
    kind = "integer_overflow"


class RetrievalFailure(CommitGrepError):
    """The git collaborator failed or returned unusable output."""

    kind = "retrieval"


class LogParseError(CommitGrepError):
    kind = "log_parse"


class ConfigError(CommitGrepError):
    kind = "config"
