"""
commit-grep - Unified Diff Tokenizer

Scans the raw bytes of one `git diff` into a stream of
`(leading_whitespace, Token)` pairs. Whitespace is never emitted as a token;
its width (tab = 4 columns) rides along with the next token so the parser can
rebuild the original indentation of each line.

Disambiguation, longest match first:
    --git   extended header keyword
    ---     old-file marker
    -       removed-line prefix / range separator
    +++     new-file marker
    +       added-line prefix
    ,       range separator
    \\n      end of line
    123     integer (only when no letter follows the digit run)
    diff, index, @@   keywords
    anything else up to whitespace or ','   word

Usage:
    tokenizer = DiffTokenizer(raw_bytes)
    for whitespace, token in tokenizer:
        ...
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Optional, Tuple, Union

from .errors import TokenizeError

TAB_WIDTH = 4

# Matches Rust/C `is_ascii_whitespace` minus the newline, which is a token.
_SKIPPED_WHITESPACE = frozenset(b" \t\r\x0c")
_WORD_TERMINATORS = frozenset(b" \t\r\x0c\n,")
_DIGITS = frozenset(b"0123456789")
_LETTERS = frozenset(b"abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ")


class TokenKind(str, Enum):
    WORD = "word"
    INTEGER = "integer"
    DIFF = "diff"
    GIT = "--git"
    INDEX = "index"
    HUNK_MARKER = "@@"
    COMMA = ","
    DASH = "-"
    PLUS = "+"
    TRIPLE_DASH = "---"
    TRIPLE_PLUS = "+++"
    NEWLINE = "newline"
    EOF = "eof"
    ILLEGAL = "illegal"


_KEYWORDS = {
    "diff": TokenKind.DIFF,
    "index": TokenKind.INDEX,
    "@@": TokenKind.HUNK_MARKER,
}


@dataclass(frozen=True)
class Token:
    """One lexeme. `text` is the exact source text, so lines can be rebuilt losslessly."""

    kind: TokenKind
    text: str = ""
    value: Optional[int] = None
    line: int = 1

    def is_a(self, kind: TokenKind) -> bool:
        return self.kind is kind

    def __str__(self) -> str:
        return self.text


class DiffTokenizer:
    """
    Single-pass cursor over diff bytes.

    `next_token()` returns one `(whitespace, token)` pair per call. Once the
    input is exhausted it keeps returning EOF, so callers holding a lookahead
    never run off the end.
    """

    def __init__(self, data: Union[bytes, str]):
        if isinstance(data, str):
            data = data.encode("utf-8")
        self.data = data
        self.pos = 0
        self.line = 1

    def __iter__(self) -> Iterator[Tuple[int, Token]]:
        while True:
            whitespace, token = self.next_token()
            yield whitespace, token
            if token.kind is TokenKind.EOF:
                return

    # ------------------------------------------------------------------
    # Cursor helpers
    # ------------------------------------------------------------------

    def _at_end(self) -> bool:
        return self.pos >= len(self.data)

    def _startswith(self, literal: bytes) -> bool:
        return self.data.startswith(literal, self.pos)

    def _skip_whitespace(self) -> int:
        width = 0
        while not self._at_end() and self.data[self.pos] in _SKIPPED_WHITESPACE:
            width += TAB_WIDTH if self.data[self.pos] == 0x09 else 1
            self.pos += 1
        return width

    def _token(self, kind: TokenKind, text: str, value: Optional[int] = None) -> Token:
        return Token(kind=kind, text=text, value=value, line=self.line)

    def _fixed(self, kind: TokenKind, literal: str) -> Token:
        self.pos += len(literal)
        return self._token(kind, literal)

    def _is_entire_int(self) -> bool:
        """True when the digit run at the cursor is not glued to a letter."""
        pos = self.pos
        while pos < len(self.data):
            ch = self.data[pos]
            if ch in _DIGITS:
                pos += 1
            elif ch in _LETTERS:
                return False
            else:
                return True
        return True

    def _read_run(self) -> str:
        start = self.pos
        while not self._at_end() and self.data[self.pos] not in _WORD_TERMINATORS:
            self.pos += 1
        raw = self.data[start:self.pos]
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise TokenizeError(f"invalid UTF-8 in diff text: {e.reason}", start + e.start) from e

    def _read_int(self) -> Token:
        start = self.pos
        while not self._at_end() and self.data[self.pos] in _DIGITS:
            self.pos += 1
        text = self.data[start:self.pos].decode("ascii")
        return self._token(TokenKind.INTEGER, text, int(text))

    def _read_word(self) -> Token:
        text = self._read_run()
        return self._token(_KEYWORDS.get(text, TokenKind.WORD), text)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def next_token(self) -> Tuple[int, Token]:
        whitespace = self._skip_whitespace()

        if self._at_end():
            return whitespace, self._token(TokenKind.EOF, "")

        ch = self.data[self.pos]

        if ch == 0x0A:
            token = self._fixed(TokenKind.NEWLINE, "\n")
            self.line += 1
        elif ch == 0x2C:
            token = self._fixed(TokenKind.COMMA, ",")
        elif ch == 0x2D:
            if self._startswith(b"--git"):
                token = self._fixed(TokenKind.GIT, "--git")
            elif self._startswith(b"---"):
                token = self._fixed(TokenKind.TRIPLE_DASH, "---")
            else:
                token = self._fixed(TokenKind.DASH, "-")
        elif ch == 0x2B:
            if self._startswith(b"+++"):
                token = self._fixed(TokenKind.TRIPLE_PLUS, "+++")
            else:
                token = self._fixed(TokenKind.PLUS, "+")
        elif ch in _DIGITS and self._is_entire_int():
            token = self._read_int()
        elif ch < 0x80:
            token = self._read_word()
        else:
            # Non-ASCII lead byte: never valid diff metadata, but hunk bodies
            # may carry it, so the decoded text is kept.
            token = self._token(TokenKind.ILLEGAL, self._read_run())

        return whitespace, token


def tokenize(data: Union[bytes, str]) -> Iterator[Tuple[int, Token]]:
    """Lazily tokenize a diff, ending with (and including) the first EOF."""
    return iter(DiffTokenizer(data))
