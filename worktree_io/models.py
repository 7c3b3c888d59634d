"""Shared pydantic models: the contract between parsing, paths and the workspace lifecycle."""

import re
from pathlib import Path
from typing import Annotated, Literal, assert_never

from pydantic import BaseModel, ConfigDict, Field, NonNegativeInt, field_validator

# Canonical 8-4-4-4-12 form only; braced, URN and unhyphenated spellings are rejected.
UUID_RE = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE)


def is_uuid(value: str) -> bool:
    return UUID_RE.fullmatch(value) is not None


def check_path_segment(value: str) -> str:
    """Reject owner/repo values that would escape or alias <root>/github/<owner>/<repo>."""
    if value in (".", "..") or "/" in value or "\\" in value:
        raise ValueError(f"must be a single path segment, got {value!r}")
    return value


class GitHubIssue(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["github"] = "github"
    owner: str = Field(min_length=1)
    repo: str = Field(min_length=1)
    number: NonNegativeInt

    @field_validator("owner", "repo")
    @classmethod
    def _check_path_segment(cls, value: str) -> str:
        return check_path_segment(value)

    @property
    def workspace_dir_name(self) -> str:
        return workspace_dir_name(self)

    @property
    def branch_name(self) -> str:
        return workspace_dir_name(self)

    @property
    def clone_url(self) -> str:
        return clone_url(self)


class LinearIssue(BaseModel):
    """A Linear issue, paired with the GitHub repo that hosts its code."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["linear"] = "linear"
    owner: str = Field(min_length=1)
    repo: str = Field(min_length=1)
    id: str  # Linear issue UUID, kept verbatim

    @field_validator("owner", "repo")
    @classmethod
    def _check_path_segment(cls, value: str) -> str:
        return check_path_segment(value)

    @field_validator("id")
    @classmethod
    def _check_uuid(cls, value: str) -> str:
        if not is_uuid(value):
            raise ValueError(f"Invalid Linear issue UUID: {value}")
        return value

    @property
    def workspace_dir_name(self) -> str:
        return workspace_dir_name(self)

    @property
    def branch_name(self) -> str:
        return workspace_dir_name(self)

    @property
    def clone_url(self) -> str:
        return clone_url(self)


IssueRef = Annotated[GitHubIssue | LinearIssue, Field(discriminator="kind")]


def workspace_dir_name(issue: GitHubIssue | LinearIssue) -> str:
    """Directory name of the worktree inside the bare clone; also the branch name."""
    match issue:
        case GitHubIssue(number=number):
            return f"issue-{number}"
        case LinearIssue(id=linear_id):
            return f"linear-{linear_id}"
        case _:
            assert_never(issue)


def clone_url(issue: GitHubIssue | LinearIssue) -> str:
    match issue:
        case GitHubIssue(owner=owner, repo=repo) | LinearIssue(owner=owner, repo=repo):
            return f"https://github.com/{owner}/{repo}.git"
        case _:
            assert_never(issue)


class DeepLinkOptions(BaseModel):
    """Options carried by a worktree:// deep link alongside the issue."""

    model_config = ConfigDict(frozen=True)

    # Symbolic name (cursor, code, zed, nvim, ...) or a raw command.
    editor: str | None = None


class Workspace(BaseModel):
    """Result of open_or_create. Never persisted."""

    model_config = ConfigDict(frozen=True)

    path: Path
    issue: IssueRef
    created: bool  # False when an existing worktree was reused
