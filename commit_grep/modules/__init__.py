# commit-grep Modules
# Diff tokenizer -> parser -> context selector -> concurrent commit aggregator

from .errors import (
    CommitGrepError,
    ConfigError,
    IntegerOverflow,
    InvalidInteger,
    LogParseError,
    ParseError,
    RetrievalFailure,
    TokenizeError,
    UnexpectedToken,
)
from .diff_model import Chunk, Content, ContentType, Program, Statement
from .diff_tokenizer import DiffTokenizer, Token, TokenKind, tokenize
from .diff_parser import DiffParser, parse_diff
from .context_selector import (
    CONTEXT_BREAK,
    SelectionResult,
    expand_context,
    line_matches,
    select_lines,
    visible_entries,
)
from .rendering import StatementFormat, render_statement
from .schemas import (
    AggregateReport,
    CommitInfo,
    CommitMatchResult,
    CommitStatus,
    FileMatchResult,
    MatchOptions,
    PairMode,
    SearchConfig,
)
from .log_parser import LogParseResult, parse_medium_log
from .git_source import DiffSource, GitSource
from .aggregator import CommitAggregator, CommitPair, match_diff, pair_commits, search_history
from .report import format_report, to_json

__all__ = [
    # Errors
    "CommitGrepError",
    "ConfigError",
    "IntegerOverflow",
    "InvalidInteger",
    "LogParseError",
    "ParseError",
    "RetrievalFailure",
    "TokenizeError",
    "UnexpectedToken",
    # Diff model
    "Chunk",
    "Content",
    "ContentType",
    "Program",
    "Statement",
    # Tokenizer / parser
    "DiffTokenizer",
    "Token",
    "TokenKind",
    "tokenize",
    "DiffParser",
    "parse_diff",
    # Context selection
    "CONTEXT_BREAK",
    "SelectionResult",
    "expand_context",
    "line_matches",
    "select_lines",
    "visible_entries",
    "StatementFormat",
    "render_statement",
    # Schemas
    "AggregateReport",
    "CommitInfo",
    "CommitMatchResult",
    "CommitStatus",
    "FileMatchResult",
    "MatchOptions",
    "PairMode",
    "SearchConfig",
    # Git
    "LogParseResult",
    "parse_medium_log",
    "DiffSource",
    "GitSource",
    # Aggregation
    "CommitAggregator",
    "CommitPair",
    "match_diff",
    "pair_commits",
    "search_history",
    "format_report",
    "to_json",
]
