"""
commit-grep - `git log --pretty=medium` Parser

Turns medium-format log output into an ordered list of CommitInfo. Sections
that do not look like a commit are recorded in `errors` and skipped; the
rest of the log is still parsed.

Example input:

    commit ebcbf7f96d2c6690e43833e60345075ce752bef0 (HEAD -> master)
    Author: Jane Doe <jane@example.com>
    Date:   Sat Nov 25 22:56:43 2023 -0500

        feat: added date to matched commit output
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from loguru import logger

from .schemas import CommitInfo

COMMIT_LINE = re.compile(r"^commit ([0-9a-fA-F]{4,64})((?: [0-9a-fA-F]{4,64})*)(?: \((.*)\))?\s*$")
HEADER_LINE = re.compile(r"^([A-Za-z][A-Za-z-]*):\s*(.*)$")
MESSAGE_INDENT = "    "


@dataclass
class LogParseResult:
    commits: List[CommitInfo] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)


def _split_refs(raw: Optional[str]) -> List[str]:
    if not raw:
        return []
    return [ref.strip() for ref in raw.split(",") if ref.strip()]


def _build_commit(
    commit_id: str,
    refs: List[str],
    parents: Optional[List[str]],
    headers: Dict[str, str],
    message: List[str],
) -> CommitInfo:
    while message and not message[-1]:
        message.pop()
    return CommitInfo(
        id=commit_id,
        date=headers.get("Date", ""),
        message="\n".join(message).strip(),
        refs=refs,
        parents=parents,
    )


def parse_medium_log(text: str, with_parents: bool = False) -> LogParseResult:
    """
    Parse the full output of `git log --pretty=medium`.

    With `with_parents`, the log was produced with `--parents` and the hashes
    after the commit id are its parents (none for a root commit).
    """
    result = LogParseResult()
    lines = text.splitlines()

    i = 0
    while i < len(lines):
        line = lines[i]
        if not line.strip():
            i += 1
            continue

        match = COMMIT_LINE.match(line)
        if not match:
            result.errors.append(f"line {i + 1}: expected 'commit <hash>', found {line.strip()[:60]!r}")
            i += 1
            while i < len(lines) and not COMMIT_LINE.match(lines[i]):
                i += 1
            continue

        commit_id = match.group(1)
        parents = match.group(2).split() if with_parents else None
        refs = _split_refs(match.group(3))
        i += 1

        # Header block: Author:, Merge:, Date: ...
        headers: Dict[str, str] = {}
        while i < len(lines) and lines[i].strip():
            header = HEADER_LINE.match(lines[i])
            if header:
                headers[header.group(1)] = header.group(2).strip()
            i += 1

        if "Date" not in headers:
            result.errors.append(f"commit {commit_id[:12]}: missing Date header")

        # Message block: indented lines up to the next commit line.
        message: List[str] = []
        while i < len(lines) and not COMMIT_LINE.match(lines[i]):
            body = lines[i]
            message.append(body[len(MESSAGE_INDENT):] if body.startswith(MESSAGE_INDENT) else body.strip())
            i += 1

        result.commits.append(_build_commit(commit_id, refs, parents, headers, message))

    for error in result.errors:
        logger.warning(f"git log parse: {error}")
    return result
