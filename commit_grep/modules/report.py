"""
commit-grep - Report Formatting

Plain-text and JSON renderings of an AggregateReport. Colour is left to
whatever consumes the text.
"""

from __future__ import annotations

from typing import Any, Dict, List

from .schemas import AggregateReport, CommitMatchResult, FileMatchResult, MatchOptions


def _format_file(file_match: FileMatchResult, options: MatchOptions) -> List[str]:
    lines: List[str] = []
    if not options.skip_file_print:
        lines.append(f"files: {file_match.header}")
        lines.append(f"file matches: {file_match.matched_line_count}")
    if file_match.rendered_content:
        lines.append(file_match.rendered_content)
    lines.append("")
    return lines


def _format_commit(commit: CommitMatchResult, options: MatchOptions) -> List[str]:
    lines = [f"for commit hash: {commit.commit_id}"]
    if commit.date:
        lines.append(f"date: {commit.date}")
    lines.append(f"commit matches: {commit.total_matches}")
    lines.append("")
    for file_match in commit.per_file:
        lines.extend(_format_file(file_match, options))
    return lines


def format_report(report: AggregateReport, options: MatchOptions) -> str:
    """grep-like text report; zero-match commits only appear with show_empty."""
    lines = [f"Searched for: {report.search_string}, total matches: {report.total_matches}"]

    for commit in report.per_commit:
        if not commit.ok:
            continue
        if commit.total_matches == 0 and not options.show_empty:
            continue
        lines.extend(_format_commit(commit, options))

    if report.failed_commits:
        lines.append(f"failed commits: {report.failed_count}")
        for commit in report.per_commit:
            if not commit.ok:
                lines.append(f"  {commit.commit_id} ({commit.error_kind}): {commit.error}")

    return "\n".join(lines).strip()


def to_json(report: AggregateReport) -> Dict[str, Any]:
    """JSON-serializable dict."""
    return report.model_dump(mode="json")
