"""GitBackend that shells out to the git binary."""

import os
import subprocess
from collections.abc import Callable
from pathlib import Path

from worktree_io import log
from worktree_io.errors import DefaultBranchError, GitCommandError
from worktree_io.git.base import DEFAULT_BRANCH_CANDIDATES, FETCH_REFSPEC, GitBackend

_ORIGIN_PREFIX = "refs/remotes/origin/"


def _c_locale_env() -> dict[str, str]:
    # `remote show` output is parsed, so it must not be translated
    return {**os.environ, "LC_ALL": "C"}


class GitCli(GitBackend):
    def __init__(self, git: str = "git") -> None:
        self._git = git

    def _run(
        self, args: list[str], *, cwd: Path | None = None, env: dict[str, str] | None = None
    ) -> subprocess.CompletedProcess[str]:
        cmd = [self._git, *args] if cwd is None else [self._git, "-C", str(cwd), *args]
        log.debug(f"$ {' '.join(cmd)}")
        return subprocess.run(cmd, capture_output=True, text=True, env=env)

    def _check(self, args: list[str], *, operation: str, target: str | Path, cwd: Path | None = None) -> str:
        """Run git and return stdout, raising GitCommandError on any failure."""
        try:
            result = self._run(args, cwd=cwd)
        except OSError as exc:
            raise GitCommandError(
                f"Failed to run `git {operation}` ({exc})", operation=operation, target=target
            ) from exc
        if result.returncode != 0:
            raise GitCommandError(
                f"git {operation} failed for {target}",
                operation=operation,
                target=target,
                returncode=result.returncode,
                stderr=result.stderr or "",
            )
        return result.stdout

    def _query(self, args: list[str], *, cwd: Path) -> str | None:
        """Run git and return stdout, or None if it could not run or exited non-zero."""
        try:
            result = self._run(args, cwd=cwd, env=_c_locale_env())
        except OSError:
            return None
        if result.returncode != 0:
            return None
        return result.stdout

    # ------------------------------------------------------------------
    # Mirror
    # ------------------------------------------------------------------

    def bare_clone(self, url: str, dest: Path) -> None:
        dest.parent.mkdir(parents=True, exist_ok=True)
        self._check(["clone", "--bare", url, str(dest)], operation="clone --bare", target=url)
        self._check(
            ["config", "remote.origin.fetch", FETCH_REFSPEC],
            operation="config remote.origin.fetch",
            target=dest,
            cwd=dest,
        )
        # Populates refs/remotes/origin/* now that the refspec is in place.
        self._check(["fetch", "origin"], operation="fetch origin", target=dest, cwd=dest)

    def fetch(self, bare: Path) -> None:
        self._check(["fetch", "origin"], operation="fetch origin", target=bare, cwd=bare)

    # ------------------------------------------------------------------
    # Branches
    # ------------------------------------------------------------------

    def _branch_from_symbolic_ref(self, bare: Path) -> str | None:
        out = self._query(["symbolic-ref", f"{_ORIGIN_PREFIX}HEAD"], cwd=bare)
        if out is None:
            return None
        ref = out.strip()
        if not ref.startswith(_ORIGIN_PREFIX):
            return None
        return ref.removeprefix(_ORIGIN_PREFIX) or None

    def _branch_from_remote_show(self, bare: Path) -> str | None:
        out = self._query(["remote", "show", "origin"], cwd=bare)
        if out is None:
            return None
        for line in out.splitlines():
            line = line.strip()
            if line.startswith("HEAD branch:"):
                branch = line.removeprefix("HEAD branch:").strip()
                # git prints "(unknown)" when the remote HEAD is ambiguous
                if branch and branch != "(unknown)":
                    return branch
        return None

    def _branch_from_candidates(self, bare: Path) -> str | None:
        for candidate in DEFAULT_BRANCH_CANDIDATES:
            if self.branch_exists_remote(bare, candidate):
                return candidate
        return None

    def detect_default_branch(self, bare: Path) -> str:
        strategies: list[Callable[[Path], str | None]] = [
            self._branch_from_symbolic_ref,
            self._branch_from_remote_show,
            self._branch_from_candidates,
        ]
        for strategy in strategies:
            branch = strategy(bare)
            if branch:
                return branch
        raise DefaultBranchError(bare)

    def branch_exists_remote(self, bare: Path, branch: str) -> bool:
        return self._query(["rev-parse", "--verify", "--quiet", f"{_ORIGIN_PREFIX}{branch}"], cwd=bare) is not None

    # ------------------------------------------------------------------
    # Worktrees
    # ------------------------------------------------------------------

    def create_worktree(
        self,
        bare: Path,
        dest: Path,
        branch: str,
        base_branch: str,
        branch_exists: bool,
    ) -> None:
        if branch_exists:
            # -B: the bare clone may already hold a stale local head with this name.
            args = ["worktree", "add", "--track", "-B", branch, str(dest), f"origin/{branch}"]
        else:
            args = ["worktree", "add", "-b", branch, str(dest), f"origin/{base_branch}"]
        self._check(args, operation="worktree add", target=branch, cwd=bare)
