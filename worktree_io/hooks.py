"""pre:open / post:open hook scripts."""

import os
import subprocess
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import assert_never

from pydantic import BaseModel, ConfigDict

from worktree_io import log
from worktree_io.models import GitHubIssue, LinearIssue, Workspace
from worktree_io.opener import augmented_path


class HookContext(BaseModel):
    """Template variables available to hook scripts as {{name}}."""

    model_config = ConfigDict(frozen=True)

    owner: str
    repo: str
    issue: str  # issue number, or Linear UUID
    branch: str
    worktree_path: str

    @classmethod
    def from_issue(cls, issue: GitHubIssue | LinearIssue, worktree_path: Path) -> "HookContext":
        match issue:
            case GitHubIssue(owner=owner, repo=repo, number=number):
                issue_str = str(number)
            case LinearIssue(owner=owner, repo=repo, id=linear_id):
                issue_str = linear_id
            case _:
                assert_never(issue)
        return cls(
            owner=owner,
            repo=repo,
            issue=issue_str,
            branch=issue.branch_name,
            worktree_path=str(worktree_path),
        )

    @classmethod
    def from_workspace(cls, workspace: Workspace) -> "HookContext":
        return cls.from_issue(workspace.issue, workspace.path)

    def render(self, template: str) -> str:
        rendered = template
        for name, value in self.model_dump().items():
            rendered = rendered.replace(f"{{{{{name}}}}}", value)
        return rendered


def run_hook(script: str, ctx: HookContext) -> None:
    """Render script with ctx and run it with sh inside the worktree.

    Output goes straight to the terminal. A failing hook only logs a warning.
    """
    rendered = ctx.render(script)
    with NamedTemporaryFile("w", prefix="worktree-hook-", suffix=".sh", delete=False) as fh:
        fh.write(rendered)
        script_path = Path(fh.name)

    try:
        script_path.chmod(0o755)
        result = subprocess.run(
            ["sh", str(script_path)],
            cwd=ctx.worktree_path if Path(ctx.worktree_path).is_dir() else None,
            env={**os.environ, "PATH": augmented_path()},
        )
    except OSError as exc:
        log.warning(f"failed to run hook: {exc}")
        return
    finally:
        script_path.unlink(missing_ok=True)

    if result.returncode != 0:
        log.warning(f"hook exited with status {result.returncode}")
