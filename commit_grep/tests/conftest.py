# Pytest configuration for the commit-grep test suite
#
# Timeout strategy:
# - FAST tests: 10s (pure unit tests, no I/O)
# - MEDIUM tests: 30s (asyncio fan-out with fake sources)
# - SLOW tests: 60s (real git subprocesses)

from __future__ import annotations

import shutil
import subprocess
import time
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

import pytest

from commit_grep.modules.schemas import CommitInfo

# ---------------------------------------------------------------------------
# Timeout configuration by test file
# ---------------------------------------------------------------------------

TIMEOUT_MAP = {
    "test_git_source": 60,
    "test_aggregator": 30,
    "test_cli": 30,
    "test_diff_tokenizer": 10,
    "test_diff_parser": 10,
    "test_context_selector": 10,
    "test_rendering": 10,
    "test_log_parser": 10,
    "test_report": 10,
}


def pytest_collection_modifyitems(config, items):
    """Apply timeout markers based on test file names."""
    for item in items:
        test_name = Path(str(item.fspath)).stem

        timeout = 30  # default
        for pattern, t in TIMEOUT_MAP.items():
            if pattern in test_name:
                timeout = t
                break

        if item.get_closest_marker("timeout") is None:
            item.add_marker(pytest.mark.timeout(timeout))


# ---------------------------------------------------------------------------
# Sample diffs
# ---------------------------------------------------------------------------

SIMPLE_DIFF = (
    "diff --git a/x b/x\n"
    "--- a/x\n"
    "+++ b/x\n"
    "@@ -1,2 +1,2 @@\n"
    "-old line\n"
    "+new line\n"
    " context line\n"
)

TWO_FILE_DIFF = (
    "diff --git a/src/app.py b/src/app.py\n"
    "index 318bd87..4a5c2e1 100644\n"
    "--- a/src/app.py\n"
    "+++ b/src/app.py\n"
    "@@ -10,4 +10,4 @@ def handler(request):\n"
    "     user = load_user(request)\n"
    "-    token = request.token\n"
    "+    token = request.headers.get('token')\n"
    "     return user\n"
    "@@ -40,2 +40,3 @@ class Session:\n"
    "     def close(self):\n"
    "+        self.token = None\n"
    "         self.open = False\n"
    "diff --git a/README.md b/README.md\n"
    "index 1111111..2222222 100644\n"
    "--- a/README.md\n"
    "+++ b/README.md\n"
    "@@ -1 +1 @@\n"
    "-# App\n"
    "+# App with token auth\n"
)


@pytest.fixture
def simple_diff() -> bytes:
    return SIMPLE_DIFF.encode("utf-8")


@pytest.fixture
def two_file_diff() -> bytes:
    return TWO_FILE_DIFF.encode("utf-8")


# ---------------------------------------------------------------------------
# Fake diff source
# ---------------------------------------------------------------------------


class FakeDiffSource:
    """In-memory DiffSource. Values may be bytes, or an exception to raise."""

    def __init__(
        self,
        commits: List[CommitInfo],
        diffs: Dict[Tuple[str, str], Union[bytes, Exception]],
        delays: Optional[Dict[str, float]] = None,
    ):
        self.commits = commits
        self.diffs = diffs
        self.delays = delays or {}
        self.calls: List[Tuple[str, str, int]] = []
        self.depths: List[Optional[int]] = []

    def get_diff(self, commit_a: str, commit_b: str, context_lines: int) -> bytes:
        self.calls.append((commit_a, commit_b, context_lines))
        delay = self.delays.get(commit_b)
        if delay:
            time.sleep(delay)
        value = self.diffs.get((commit_a, commit_b), b"")
        if isinstance(value, Exception):
            raise value
        return value

    def list_commits(self, depth: Optional[int] = None) -> List[CommitInfo]:
        self.depths.append(depth)
        if depth is None:
            return list(self.commits)
        return list(self.commits[: depth + 1])


def make_commits(count: int) -> List[CommitInfo]:
    """Newest first, ids c<count-1> ... c0."""
    return [
        CommitInfo(id=f"c{i}", date=f"2024-01-{i + 1:02d}", message=f"commit {i}")
        for i in reversed(range(count))
    ]


# ---------------------------------------------------------------------------
# Real git repository
# ---------------------------------------------------------------------------


def _git(repo: Path, *args: str) -> str:
    result = subprocess.run(
        [
            "git",
            "-c", "user.name=Test User",
            "-c", "user.email=test@example.com",
            "-c", "commit.gpgsign=false",
            "-c", "init.defaultBranch=main",
            *args,
        ],
        cwd=str(repo),
        capture_output=True,
        text=True,
        check=True,
    )
    return result.stdout


@pytest.fixture
def git_repo(tmp_path: Path) -> Path:
    """A repository with three commits touching app.py."""
    if shutil.which("git") is None:
        pytest.skip("git is not installed")

    repo = tmp_path / "repo"
    repo.mkdir()
    _git(repo, "init", "-q")

    app = repo / "app.py"
    app.write_text("def main():\n    return 1\n", encoding="utf-8")
    _git(repo, "add", "app.py")
    _git(repo, "commit", "-q", "-m", "initial")

    app.write_text("def main():\n    # TODO: handle errors\n    return 1\n", encoding="utf-8")
    _git(repo, "commit", "-q", "-am", "add todo")

    app.write_text("def main():\n    # TODO: handle errors\n    return 2\n", encoding="utf-8")
    _git(repo, "commit", "-q", "-am", "return two")

    return repo
