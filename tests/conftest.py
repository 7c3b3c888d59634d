"""Shared test fixtures."""

from pathlib import Path

import pytest

import worktree_io.settings as settings_module
from worktree_io import log
from worktree_io.errors import DefaultBranchError, GitCommandError
from worktree_io.git.base import GitBackend
from worktree_io.models import GitHubIssue, LinearIssue

LINEAR_UUID = "9cad7a4b-9426-4788-9dbc-e784df999053"


class FakeGit(GitBackend):
    """In-memory GitBackend that records calls and creates directories like git would."""

    def __init__(self) -> None:
        self.calls: list[tuple] = []
        self.default_branch: str | None = "main"
        self.remote_branches: set[str] = {"main"}
        self.fail_on: str | None = None

    def _maybe_fail(self, operation: str, target: Path | str) -> None:
        if self.fail_on == operation:
            raise GitCommandError(f"git {operation} failed", operation=operation, target=target, returncode=128)

    def bare_clone(self, url: str, dest: Path) -> None:
        self.calls.append(("bare_clone", url, dest))
        self._maybe_fail("clone", url)
        dest.mkdir(parents=True)

    def fetch(self, bare: Path) -> None:
        self.calls.append(("fetch", bare))
        self._maybe_fail("fetch", bare)

    def detect_default_branch(self, bare: Path) -> str:
        self.calls.append(("detect_default_branch", bare))
        if self.default_branch is None:
            raise DefaultBranchError(bare)
        return self.default_branch

    def branch_exists_remote(self, bare: Path, branch: str) -> bool:
        self.calls.append(("branch_exists_remote", bare, branch))
        return branch in self.remote_branches

    def create_worktree(self, bare: Path, dest: Path, branch: str, base_branch: str, branch_exists: bool) -> None:
        self.calls.append(("create_worktree", bare, dest, branch, base_branch, branch_exists))
        self._maybe_fail("worktree add", branch)
        dest.mkdir(parents=True)

    def operations(self) -> list[str]:
        return [call[0] for call in self.calls]


@pytest.fixture
def fake_git() -> FakeGit:
    return FakeGit()


@pytest.fixture
def github_issue() -> GitHubIssue:
    return GitHubIssue(owner="acme", repo="widgets", number=417)


@pytest.fixture
def linear_issue() -> LinearIssue:
    return LinearIssue(owner="acme", repo="widgets", id=LINEAR_UUID)


@pytest.fixture
def config_path(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the config store at an empty temp file location."""
    path = tmp_path / "config" / "config.toml"
    monkeypatch.setattr(settings_module, "CONFIG_PATH", path)
    for var in (
        "WORKTREE_EDITOR_COMMAND",
        "WORKTREE_OPEN_EDITOR",
        "WORKTREE_PRE_OPEN_HOOK",
        "WORKTREE_POST_OPEN_HOOK",
        "WORKTREE_WORKSPACE_ROOT",
    ):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)  # keep a stray .env out of the settings
    return path


@pytest.fixture(autouse=True)
def reset_lru_cache():
    settings_module._load_toml.cache_clear()
    yield
    settings_module._load_toml.cache_clear()


@pytest.fixture(autouse=True)
def reset_log_level():
    log.set_level("info")
    yield
    log.set_level("info")
