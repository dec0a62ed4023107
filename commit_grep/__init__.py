"""commit-grep: search a git history's diffs with grep-style context."""

__version__ = "0.3.0"
