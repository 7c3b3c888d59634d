"""Filesystem layout for bare mirrors and per-issue worktrees.

    <root>/github/<owner>/<repo>                  bare mirror, shared per repo
    <root>/github/<owner>/<repo>/issue-42         worktree for a GitHub issue
    <root>/github/<owner>/<repo>/linear-<uuid>    worktree for a Linear issue
"""

from pathlib import Path
from typing import assert_never

from worktree_io.models import GitHubIssue, LinearIssue, workspace_dir_name


def default_root() -> Path:
    return Path.home() / "worktrees"


def bare_clone_path(issue: GitHubIssue | LinearIssue, root: Path | None = None) -> Path:
    base = root if root is not None else default_root()
    match issue:
        case GitHubIssue(owner=owner, repo=repo) | LinearIssue(owner=owner, repo=repo):
            return base / "github" / owner / repo
        case _:
            assert_never(issue)


def temp_path(issue: GitHubIssue | LinearIssue, root: Path | None = None) -> Path:
    """Path of the worktree checkout for issue."""
    return bare_clone_path(issue, root) / workspace_dir_name(issue)
