"""
commit-grep - Unified Diff Parser

Turns the token stream of one `git diff` into a Program: one Statement per
file, each holding the Content lines of all its hunks in order.

Grammar accepted (git extended headers):

    diff --git a/<path> b/<path>
    [--- <path> / +++ <path>]                          exact file names
    [other metadata lines: index, mode ...]            skipped
    @@ -<start>[,<count>] +<start>[,<count>] @@ [text]  text discarded
    <'+'|'-'|' '><line content>

A malformed hunk or file header does not abort the parse. The problem is
recorded in `Program.errors`, the parser skips ahead to the next line that
starts with `@@` or `diff --git`, and carries on with the remaining hunks and
files. Only undecodable bytes (TokenizeError) abort a diff.
"""

from __future__ import annotations

import re
from typing import List, Optional, Tuple, Union

from loguru import logger

from .diff_model import Chunk, Content, ContentType, Program, Statement
from .diff_tokenizer import DiffTokenizer, Token, TokenKind
from .errors import IntegerOverflow, InvalidInteger, ParseError, UnexpectedToken

# Hunk ranges must fit an unsigned 64-bit line number.
MAX_RANGE_VALUE = 2**64 - 1

# First token of a body line (at column 0) -> (line kind, text the token stands for)
_LINE_PREFIXES = {
    TokenKind.PLUS: (ContentType.ADDED, ""),
    TokenKind.TRIPLE_PLUS: (ContentType.ADDED, "++"),
    TokenKind.DASH: (ContentType.REMOVED, ""),
    TokenKind.TRIPLE_DASH: (ContentType.REMOVED, "--"),
    TokenKind.GIT: (ContentType.REMOVED, "-git"),
}

NO_NEWLINE_MARKER = "\\"
DEV_NULL = "/dev/null"
_B_PREFIX = re.compile(r" b/")


def split_header_paths(text: str, line: Optional[int] = None) -> Tuple[str, str]:
    """
    Split the `a/<path> b/<path>` part of a `diff --git` line.

    Paths may contain spaces, so the split prefers the ` b/` position where
    both sides name the same path, then a lone ` b/`, then plain whitespace.
    """
    candidates = [m.start() for m in _B_PREFIX.finditer(text)]
    for pos in candidates:
        left, right = text[:pos], text[pos + 1:]
        if left[2:] == right[2:]:
            return left, right
    if len(candidates) == 1:
        pos = candidates[0]
        return text[:pos], text[pos + 1:]

    parts = text.split()
    if len(parts) == 2:
        return parts[0], parts[1]
    raise ParseError(f"malformed file header: {text!r}", line)


class DiffParser:
    """
    Recursive-descent parser with a two-token cursor (current + peek).

    The cursor is owned by the parser alone; each `_advance()` hands the peek
    token over to `current` and pulls the next one from the tokenizer.
    """

    def __init__(self, tokenizer: DiffTokenizer):
        self.tokenizer = tokenizer
        self.errors: List[str] = []
        self.curr_ws, self.curr = tokenizer.next_token()
        self.peek_ws, self.peek = tokenizer.next_token()
        self.line_start = True

    # ------------------------------------------------------------------
    # Cursor
    # ------------------------------------------------------------------

    def _advance(self) -> None:
        self.line_start = self.curr.kind is TokenKind.NEWLINE
        self.curr_ws, self.curr = self.peek_ws, self.peek
        self.peek_ws, self.peek = self.tokenizer.next_token()

    def _at_eof(self) -> bool:
        return self.curr.kind is TokenKind.EOF

    def _at_column_zero(self, kind: TokenKind) -> bool:
        return self.line_start and self.curr_ws == 0 and self.curr.kind is kind

    def _at_hunk_header(self) -> bool:
        return self._at_column_zero(TokenKind.HUNK_MARKER)

    def _starts_hunk(self) -> bool:
        return self._at_hunk_header() and self.peek.kind is TokenKind.DASH

    def _starts_file(self) -> bool:
        return self._at_column_zero(TokenKind.DIFF) and self.peek.kind is TokenKind.GIT

    def _skip_line(self) -> None:
        while self.curr.kind not in (TokenKind.NEWLINE, TokenKind.EOF):
            self._advance()
        if self.curr.kind is TokenKind.NEWLINE:
            self._advance()

    def _recover(self) -> None:
        """Skip to the next hunk or file header."""
        self._skip_line()
        while not self._at_eof() and not self._at_hunk_header() and not self._starts_file():
            self._skip_line()

    def _expect(self, kind: TokenKind, what: str) -> Token:
        if self.curr.kind is not kind:
            raise UnexpectedToken(what, self.curr.text or self.curr.kind.value, self.curr.line)
        token = self.curr
        self._advance()
        return token

    def _expect_int(self, what: str) -> int:
        token = self.curr
        if token.kind is TokenKind.INTEGER:
            if token.value > MAX_RANGE_VALUE:
                raise IntegerOverflow(f"{what} {token.text} exceeds {MAX_RANGE_VALUE}", token.line)
            self._advance()
            return token.value
        if token.kind is TokenKind.WORD:
            raise InvalidInteger(f"{what} is not a number: {token.text!r}", token.line)
        raise UnexpectedToken(what, token.text or token.kind.value, token.line)

    # ------------------------------------------------------------------
    # Grammar
    # ------------------------------------------------------------------

    def _parse_range(self, what: str) -> tuple:
        start = self._expect_int(f"{what} start")
        count = 1
        if self.curr.kind is TokenKind.COMMA:
            self._advance()
            count = self._expect_int(f"{what} count")
        return start, count

    def parse_chunk(self) -> Chunk:
        self._expect(TokenKind.HUNK_MARKER, "'@@'")
        self._expect(TokenKind.DASH, "'-'")
        removed_start, removed_count = self._parse_range("removed range")
        self._expect(TokenKind.PLUS, "'+'")
        added_start, added_count = self._parse_range("added range")
        self._expect(TokenKind.HUNK_MARKER, "closing '@@'")
        # Trailing hunk context (e.g. a function signature) is not change content.
        self._skip_line()

        chunk = Chunk(removed_start, removed_count, added_start, added_count)
        while not self._at_eof() and not self._starts_hunk() and not self._starts_file():
            content = self.parse_line()
            if content is not None:
                chunk.lines.append(content)
        return chunk

    def parse_line(self) -> Optional[Content]:
        """Parse one hunk body line, or return None for a `\\ No newline` marker."""
        ws = self.curr_ws
        first = self.curr

        if ws == 0 and first.kind in _LINE_PREFIXES:
            kind, text = _LINE_PREFIXES[first.kind]
            parts = [text]
            self._advance()
            ws = self.curr_ws
        elif ws == 0 and first.kind is TokenKind.WORD and first.text.startswith(NO_NEWLINE_MARKER):
            self._skip_line()
            return None
        else:
            kind = ContentType.NEUTRAL
            parts = []
            # Drop the one-column context prefix.
            ws = max(ws - 1, 0)

        while self.curr.kind not in (TokenKind.NEWLINE, TokenKind.EOF):
            parts.append(" " * ws + self.curr.text)
            self._advance()
            ws = self.curr_ws

        if self.curr.kind is TokenKind.NEWLINE:
            self._advance()
        return Content("".join(parts), kind)

    def _rest_of_line(self) -> str:
        """Text of the remaining tokens on this line, inner spacing rebuilt."""
        parts = []
        while self.curr.kind not in (TokenKind.NEWLINE, TokenKind.EOF):
            parts.append((" " * self.curr_ws if parts else "") + self.curr.text)
            self._advance()
        return "".join(parts)

    def _file_path(self) -> Optional[str]:
        """Path of a `---` / `+++` line, None for /dev/null."""
        self._advance()
        path = self._rest_of_line()
        self._skip_line()
        return None if path == DEV_NULL else path

    def parse_statement(self) -> Optional[Statement]:
        self._expect(TokenKind.DIFF, "'diff'")
        line = self.curr.line
        self._expect(TokenKind.GIT, "'--git'")
        path_a, path_b = split_header_paths(self._rest_of_line(), line)
        self._skip_line()

        statement = Statement(path_a=path_a, path_b=path_b)
        while not self._at_eof() and not self._starts_file():
            if not self._at_hunk_header():
                # `---` / `+++` name the files exactly, spaces included.
                if not statement.chunks and self._at_column_zero(TokenKind.TRIPLE_DASH):
                    statement.path_a = self._file_path() or statement.path_a
                elif not statement.chunks and self._at_column_zero(TokenKind.TRIPLE_PLUS):
                    statement.path_b = self._file_path() or statement.path_b
                else:
                    self._skip_line()
                continue
            try:
                statement.chunks.append(self.parse_chunk())
            except ParseError as e:
                self._record(e, statement.path_b)
                self._recover()

        if not statement.chunks:
            logger.debug(f"Dropping {statement.path_b}: no hunks")
            return None
        return statement

    def parse_program(self) -> Program:
        program = Program(errors=self.errors)
        while not self._at_eof():
            if not self._starts_file():
                self._skip_line()
                continue
            try:
                statement = self.parse_statement()
            except ParseError as e:
                self._record(e, None)
                self._recover()
                continue
            if statement is not None:
                program.statements.append(statement)
        return program

    def _record(self, error: ParseError, path: Optional[str]) -> None:
        message = f"{path}: {error}" if path else str(error)
        logger.warning(f"Diff parse error, skipping to next header: {message}")
        self.errors.append(message)


def parse_diff(data: Union[bytes, str]) -> Program:
    """Tokenize and parse one diff. Raises TokenizeError on undecodable input."""
    return DiffParser(DiffTokenizer(data)).parse_program()
