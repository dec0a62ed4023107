"""
commit-grep - Core Data Structures (Pydantic Schemas)

- MatchOptions: immutable search options shared by every worker
- CommitInfo: one entry of `git log`
- FileMatchResult / CommitMatchResult: per-file and per-commit outcomes
- AggregateReport: the whole search, read-only once built
- SearchConfig: validated contents of config.yaml
"""

from __future__ import annotations

from enum import Enum
from typing import List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .diff_model import Content
from .rendering import StatementFormat


# =============================================================================
# ENUMS
# =============================================================================


class PairMode(str, Enum):
    """How commits are paired into units of work."""

    ADJACENT = "adjacent"  # each commit against the next older one in the list
    PARENT = "parent"  # each commit against its first parent (<id>^)


class CommitStatus(str, Enum):
    OK = "ok"
    FAILED = "failed"


# =============================================================================
# OPTIONS
# =============================================================================


class MatchOptions(BaseModel):
    """Search options. Frozen: one instance is read concurrently by all workers."""

    model_config = ConfigDict(frozen=True)

    search_string: str = Field(..., min_length=1, description="Substring to look for")
    before_context: int = Field(default=0, ge=0, description="Lines of leading context")
    after_context: int = Field(default=0, ge=0, description="Lines of trailing context")
    show_empty: bool = Field(default=False, description="Keep files and commits with no matches")
    skip_file_print: bool = Field(default=False, description="Omit per-file headers in text output")
    changed_only: bool = Field(default=False, description="Only match added/removed lines")
    ignore_case: bool = Field(default=False)
    statement_format: StatementFormat = Field(default=StatementFormat.LINES)
    pair_mode: PairMode = Field(default=PairMode.ADJACENT)
    jobs: int = Field(default=8, ge=1, le=256, description="Concurrent diff retrievals")
    timeout_seconds: float = Field(default=30.0, gt=0, description="Per-diff retrieval timeout")

    @property
    def context_lines(self) -> int:
        """Context git must include in the raw diff."""
        return max(self.before_context, self.after_context)


# =============================================================================
# GIT LOG
# =============================================================================


class CommitInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    date: str = Field(default="")
    message: str = Field(default="")
    refs: List[str] = Field(default_factory=list)
    # None when the log was listed without parent ids; [] for a root commit.
    parents: Optional[List[str]] = None

    @property
    def short_id(self) -> str:
        return self.id[:12]


# =============================================================================
# RESULTS
# =============================================================================


class FileMatchResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    path_a: str
    path_b: str
    rendered_content: str = Field(default="")
    matched_line_count: int = Field(default=0, ge=0)
    visible_lines: List[Content] = Field(default_factory=list)

    @property
    def header(self) -> str:
        return f"diff: {self.path_a} {self.path_b}"


class CommitMatchResult(BaseModel):
    """Outcome of searching one commit pair. Failed results carry no matches."""

    model_config = ConfigDict(frozen=True)

    correlation_id: int = Field(..., ge=0)
    commit_id: str
    previous_commit_id: Optional[str] = None
    date: str = Field(default="")
    per_file: List[FileMatchResult] = Field(default_factory=list)
    total_matches: int = Field(default=0, ge=0)
    status: CommitStatus = Field(default=CommitStatus.OK)
    error: Optional[str] = None
    error_kind: Optional[str] = None
    diagnostics: List[str] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status == CommitStatus.OK

    @classmethod
    def failed(
        cls,
        correlation_id: int,
        commit_id: str,
        previous_commit_id: Optional[str],
        error: str,
        error_kind: str,
        date: str = "",
    ) -> "CommitMatchResult":
        return cls(
            correlation_id=correlation_id,
            commit_id=commit_id,
            previous_commit_id=previous_commit_id,
            date=date,
            status=CommitStatus.FAILED,
            error=error,
            error_kind=error_kind,
        )


class AggregateReport(BaseModel):
    model_config = ConfigDict(frozen=True)

    search_string: str
    per_commit: List[CommitMatchResult] = Field(default_factory=list)
    total_matches: int = Field(default=0, ge=0)
    failed_commits: List[str] = Field(default_factory=list)

    @property
    def failed_count(self) -> int:
        return len(self.failed_commits)

    @classmethod
    def build(cls, search_string: str, results: Sequence[CommitMatchResult]) -> "AggregateReport":
        """Totals count successful commits only."""
        return cls(
            search_string=search_string,
            per_commit=list(results),
            total_matches=sum(r.total_matches for r in results if r.ok),
            failed_commits=[r.commit_id for r in results if not r.ok],
        )


# =============================================================================
# CONFIGURATION (config.yaml)
# =============================================================================


class SearchSection(BaseModel):
    before_context: int = Field(default=0, ge=0)
    after_context: int = Field(default=0, ge=0)
    jobs: int = Field(default=8, ge=1, le=256)
    timeout_seconds: float = Field(default=30.0, gt=0)
    format: StatementFormat = Field(default=StatementFormat.LINES)
    show_empty: bool = False
    changed_only: bool = False
    ignore_case: bool = False
    pair_mode: PairMode = Field(default=PairMode.ADJACENT)


class GitSection(BaseModel):
    executable: str = Field(default="git")
    depth: Optional[int] = Field(default=None, ge=1)
    target_dir: Optional[str] = None

    @field_validator("executable")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("git executable must not be blank")
        return v.strip()


class SearchConfig(BaseModel):
    search: SearchSection = Field(default_factory=SearchSection)
    git: GitSection = Field(default_factory=GitSection)
