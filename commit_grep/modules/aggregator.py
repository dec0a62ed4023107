"""
commit-grep - Commit Aggregator

Fans the search out over every commit pair and folds the results back into a
single AggregateReport.

- One asyncio task per pair, at most `options.jobs` retrieving at once
- The blocking `get_diff` runs in a worker thread under `options.timeout_seconds`
- Every task sends exactly one (correlation_id, CommitMatchResult) message;
  failures are sent as failed results instead of escaping the task
- The collector waits for exactly one message per pair, then orders by
  correlation id, so arrival order never matters

Usage:
    aggregator = CommitAggregator(GitSource("."), MatchOptions(search_string="TODO"))
    report = asyncio.run(aggregator.search(commits))
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from loguru import logger

from .context_selector import select_lines
from .diff_parser import parse_diff
from .errors import CommitGrepError
from .git_source import EMPTY_TREE, DiffSource
from .rendering import render_statement
from .schemas import (
    AggregateReport,
    CommitInfo,
    CommitMatchResult,
    FileMatchResult,
    MatchOptions,
    PairMode,
)


@dataclass(frozen=True)
class CommitPair:
    """One unit of work: diff `base_ref` -> `commit.id`."""

    correlation_id: int
    commit: CommitInfo
    base_ref: str


def _parent_ref(commit: CommitInfo) -> str:
    if commit.parents is None:
        return f"{commit.id}^"
    if not commit.parents:
        return EMPTY_TREE
    return commit.parents[0]


def pair_commits(
    commits: Sequence[CommitInfo],
    mode: PairMode = PairMode.ADJACENT,
    newest_first: bool = True,
) -> List[CommitPair]:
    """
    Build the commit pairs to search.

    ADJACENT pairs each commit with its neighbour in the list (N commits give
    N - 1 pairs); PARENT pairs every commit with its first parent. A root
    commit is diffed against the empty tree, and a commit listed without
    parent ids falls back to `<id>^`.
    """
    ordered = list(commits) if newest_first else list(reversed(commits))

    if mode is PairMode.PARENT:
        return [CommitPair(i, c, _parent_ref(c)) for i, c in enumerate(ordered)]

    return [
        CommitPair(i, ordered[i], ordered[i + 1].id)
        for i in range(len(ordered) - 1)
    ]


def match_diff(raw: bytes, options: MatchOptions) -> Tuple[List[FileMatchResult], int, List[str]]:
    """
    Parse one raw diff and run the context selector over every file.

    Returns (file results, total matched lines, parse diagnostics). Files with
    no matches are dropped unless `options.show_empty` is set.
    """
    program = parse_diff(raw)

    files: List[FileMatchResult] = []
    total = 0
    for statement in program.statements:
        lines = statement.lines
        if not lines:
            continue
        selection = select_lines(
            lines,
            options.search_string,
            options.before_context,
            options.after_context,
            ignore_case=options.ignore_case,
            changed_only=options.changed_only,
        )
        if selection.match_count == 0 and not options.show_empty:
            continue

        rendered, shown = render_statement(statement, selection, options.statement_format)
        files.append(
            FileMatchResult(
                path_a=statement.path_a,
                path_b=statement.path_b,
                rendered_content=rendered,
                matched_line_count=selection.match_count,
                visible_lines=shown,
            )
        )
        total += selection.match_count

    return files, total, list(program.errors)


class CommitAggregator:
    """Concurrent per-commit search over a DiffSource."""

    def __init__(self, source: DiffSource, options: MatchOptions):
        self.source = source
        self.options = options

    async def _retrieve(self, pair: CommitPair) -> bytes:
        return await asyncio.wait_for(
            asyncio.to_thread(
                self.source.get_diff,
                pair.base_ref,
                pair.commit.id,
                self.options.context_lines,
            ),
            timeout=self.options.timeout_seconds,
        )

    async def _search_pair(self, pair: CommitPair) -> CommitMatchResult:
        raw = await self._retrieve(pair)
        if not raw:
            return CommitMatchResult(
                correlation_id=pair.correlation_id,
                commit_id=pair.commit.id,
                previous_commit_id=pair.base_ref,
                date=pair.commit.date,
            )

        files, total, diagnostics = await asyncio.to_thread(match_diff, raw, self.options)
        for diagnostic in diagnostics:
            logger.warning(f"{pair.commit.short_id}: {diagnostic}")

        return CommitMatchResult(
            correlation_id=pair.correlation_id,
            commit_id=pair.commit.id,
            previous_commit_id=pair.base_ref,
            date=pair.commit.date,
            per_file=files,
            total_matches=total,
            diagnostics=diagnostics,
        )

    async def _worker(
        self,
        pair: CommitPair,
        semaphore: asyncio.Semaphore,
        results: asyncio.Queue,
    ) -> None:
        error: Optional[str] = None
        error_kind = "internal"
        result: Optional[CommitMatchResult] = None

        async with semaphore:
            try:
                result = await self._search_pair(pair)
            except asyncio.TimeoutError:
                error = f"diff retrieval timed out after {self.options.timeout_seconds}s"
                error_kind = "timeout"
            except CommitGrepError as e:
                error = str(e)
                error_kind = e.kind
            except Exception as e:
                logger.exception(f"Unexpected failure searching {pair.commit.short_id}")
                error = f"{type(e).__name__}: {e}"

        if result is None:
            logger.warning(f"Commit {pair.commit.short_id} failed ({error_kind}): {error}")
            result = CommitMatchResult.failed(
                pair.correlation_id,
                pair.commit.id,
                pair.base_ref,
                error or "unknown error",
                error_kind,
                date=pair.commit.date,
            )

        await results.put((pair.correlation_id, result))

    async def search_pairs(self, pairs: Sequence[CommitPair]) -> AggregateReport:
        ids = [pair.correlation_id for pair in pairs]
        if len(set(ids)) != len(ids):
            raise ValueError("commit pairs must have unique correlation ids")

        start = time.time()
        semaphore = asyncio.Semaphore(self.options.jobs)
        results: asyncio.Queue = asyncio.Queue()

        tasks = [
            asyncio.create_task(self._worker(pair, semaphore, results))
            for pair in pairs
        ]

        received = {}
        for _ in pairs:
            correlation_id, result = await results.get()
            received[correlation_id] = result

        await asyncio.gather(*tasks)

        ordered = [received[pair.correlation_id] for pair in pairs]
        report = AggregateReport.build(self.options.search_string, ordered)

        elapsed_ms = int((time.time() - start) * 1000)
        logger.info(
            f"Searched {len(pairs)} commit pairs in {elapsed_ms}ms: "
            f"{report.total_matches} matches, {report.failed_count} failed"
        )
        return report

    async def search(
        self,
        commits: Sequence[CommitInfo],
        newest_first: bool = True,
        depth: Optional[int] = None,
    ) -> AggregateReport:
        """Pair the commits and search them. `depth` caps the number of pairs."""
        pairs = pair_commits(commits, self.options.pair_mode, newest_first=newest_first)
        if depth is not None:
            pairs = pairs[:depth]
        logger.debug(f"Fanning out over {len(pairs)} commit pairs ({self.options.pair_mode.value})")
        return await self.search_pairs(pairs)


def search_history(
    source: DiffSource,
    options: MatchOptions,
    depth: Optional[int] = None,
) -> AggregateReport:
    """Synchronous entry point: list commits, then search every pair."""
    commits = source.list_commits(depth)
    return asyncio.run(CommitAggregator(source, options).search(commits, depth=depth))
