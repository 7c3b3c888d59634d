"""Exception types raised by worktree-io."""

from pathlib import Path


class WorktreeError(RuntimeError):
    pass


class IssueRefParseError(ValueError):
    """An issue reference that matches none of the accepted formats, or is malformed."""

    def __init__(self, message: str, *, text: str) -> None:
        super().__init__(message)
        self.text = text


class GitCommandError(WorktreeError):
    def __init__(
        self,
        message: str,
        *,
        operation: str,
        target: str | Path,
        returncode: int | None = None,
        stderr: str = "",
    ) -> None:
        detail = stderr.strip()
        super().__init__(f"{message}: {detail}" if detail else message)
        self.operation = operation
        self.target = str(target)
        self.returncode = returncode
        self.stderr = stderr


class DefaultBranchError(WorktreeError):
    def __init__(self, bare: Path) -> None:
        super().__init__(f"Could not detect default branch for the repository at {bare}")
        self.bare = bare


class ConfigError(WorktreeError):
    pass
