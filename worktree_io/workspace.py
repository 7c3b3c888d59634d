"""Open an existing issue worktree or materialize a new one.

The shared bare mirror is not locked: concurrent runs against the same
owner/repo are unsupported.
"""

from pathlib import Path

from worktree_io import log
from worktree_io.git.base import GitBackend
from worktree_io.git.cli import GitCli
from worktree_io.models import GitHubIssue, LinearIssue, Workspace
from worktree_io.paths import bare_clone_path, temp_path


def open_or_create(
    issue: GitHubIssue | LinearIssue,
    *,
    git: GitBackend | None = None,
    root: Path | None = None,
) -> Workspace:
    """Return the worktree for issue, creating it (and the bare mirror) on first use.

    An existing worktree is returned as-is with created=False: no fetch, no
    branch checks. Otherwise the mirror is cloned or fetched, the default
    branch detected, and a worktree added on the issue branch, tracking the
    remote branch when it already exists.

    Git failures propagate unchanged. The mirror keeps whatever state the
    clone or fetch left it in.
    """
    git = git or GitCli()
    worktree_path = temp_path(issue, root)
    bare_path = bare_clone_path(issue, root)

    if worktree_path.exists():
        return Workspace(path=worktree_path, issue=issue, created=False)

    if not bare_path.exists():
        log.info(f"Cloning {issue.clone_url} (bare) into {bare_path}…")
        with log.status(f"Cloning {issue.owner}/{issue.repo}…"):
            git.bare_clone(issue.clone_url, bare_path)
    else:
        log.info("Fetching origin…")
        with log.status(f"Fetching {issue.owner}/{issue.repo}…"):
            git.fetch(bare_path)

    base_branch = git.detect_default_branch(bare_path)
    log.info(f"Default branch: {base_branch}")

    branch = issue.branch_name
    branch_exists = git.branch_exists_remote(bare_path, branch)
    if branch_exists:
        log.debug(f"Branch {branch} exists on origin, tracking it")

    log.info(f"Creating worktree {branch} at {worktree_path}…")
    git.create_worktree(bare_path, worktree_path, branch, base_branch, branch_exists)

    return Workspace(path=worktree_path, issue=issue, created=True)
