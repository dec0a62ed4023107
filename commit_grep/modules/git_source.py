"""
commit-grep - Git Source

Runs `git` as a subprocess to fetch the two inputs of a history search:
the commit list (`git log --pretty=medium`) and the raw unified diff for a
commit pair (`git diff -U<n> A B`).

Usage:
    source = GitSource("/path/to/repo")
    commits = source.list_commits(depth=20)
    raw = source.get_diff(commits[1].id, commits[0].id, context_lines=2)
"""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import List, Optional, Protocol, Tuple, Union

from loguru import logger

from .errors import LogParseError, RetrievalFailure
from .log_parser import parse_medium_log
from .schemas import CommitInfo

# `git hash-object -t tree /dev/null`: what a root commit is diffed against.
EMPTY_TREE = "4b825dc642cb6eb9a060e54bf8d69288fbee4904"


class DiffSource(Protocol):
    """What the aggregator needs from a repository."""

    def get_diff(self, commit_a: str, commit_b: str, context_lines: int) -> bytes:
        ...

    def list_commits(self, depth: Optional[int] = None) -> List[CommitInfo]:
        ...


class GitSource:
    """DiffSource backed by the git command line."""

    def __init__(
        self,
        repo_path: str = ".",
        git_executable: str = "git",
        timeout_seconds: float = 30.0,
    ):
        self.repo_path = Path(repo_path).resolve()
        self.git_executable = git_executable
        self.timeout_seconds = timeout_seconds

    def _run_git(self, *args: str) -> Tuple[bool, Union[bytes, str]]:
        """Run a git command and return (success, stdout bytes or error text)."""
        try:
            result = subprocess.run(
                [self.git_executable] + list(args),
                cwd=str(self.repo_path),
                capture_output=True,
                timeout=self.timeout_seconds,
            )
            if result.returncode != 0:
                return False, result.stderr.decode("utf-8", errors="replace").strip()
            return True, result.stdout
        except subprocess.TimeoutExpired:
            return False, f"git {args[0]} timed out after {self.timeout_seconds}s"
        except FileNotFoundError:
            return False, f"git executable not found: {self.git_executable}"
        except OSError as e:
            return False, str(e)

    def get_diff(self, commit_a: str, commit_b: str, context_lines: int = 0) -> bytes:
        """
        Raw diff from commit_a to commit_b.

        Returns empty bytes when the commits do not differ. `context_lines`
        widens git's own context so matches near a hunk edge still get their
        surrounding lines.
        """
        diff_args = ["diff", "--no-color", "--no-ext-diff", "--no-renames"]
        if context_lines > 0:
            diff_args.append(f"-U{context_lines}")
        diff_args.extend([commit_a, commit_b])

        success, output = self._run_git(*diff_args)
        if not success:
            raise RetrievalFailure(f"git diff {commit_a} {commit_b} failed: {output}")

        logger.debug(f"git diff {commit_a[:12]}..{commit_b[:12]}: {len(output)} bytes")
        return output

    def list_commits(self, depth: Optional[int] = None) -> List[CommitInfo]:
        """
        Commits newest first.

        `depth` is the number of commit pairs wanted, so one extra commit is
        fetched to pair with the oldest.
        """
        log_args = ["log", "--pretty=medium", "--parents", "--no-color"]
        if depth is not None:
            if depth < 1:
                raise ValueError("depth must be greater than 0")
            log_args.extend(["-n", str(depth + 1)])

        success, output = self._run_git(*log_args)
        if not success:
            raise RetrievalFailure(f"git log failed: {output}")

        try:
            text = output.decode("utf-8")
        except UnicodeDecodeError as e:
            raise RetrievalFailure(f"git log returned non-UTF-8 output: {e.reason}") from e

        parsed = parse_medium_log(text, with_parents=True)
        if text.strip() and not parsed.commits:
            raise LogParseError(f"no commits found in git log output: {parsed.errors[:1]}")
        logger.info(f"Loaded {len(parsed.commits)} commits from {self.repo_path}")
        return parsed.commits
