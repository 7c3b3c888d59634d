"""Abstract base class for the git operations the workspace lifecycle needs."""

from abc import ABC, abstractmethod
from pathlib import Path

# refs/remotes/origin/* must hold every remote branch, not only the one cloned.
FETCH_REFSPEC = "+refs/heads/*:refs/remotes/origin/*"

# Tried in order when the remote does not advertise its HEAD.
DEFAULT_BRANCH_CANDIDATES = ("main", "master", "develop")


class GitBackend(ABC):
    @abstractmethod
    def bare_clone(self, url: str, dest: Path) -> None:
        """Clone url as a bare mirror at dest, tracking all remote branches."""

    @abstractmethod
    def fetch(self, bare: Path) -> None: ...

    @abstractmethod
    def detect_default_branch(self, bare: Path) -> str:
        """Return the remote's default branch name; raise DefaultBranchError if unknown."""

    @abstractmethod
    def branch_exists_remote(self, bare: Path, branch: str) -> bool:
        """True when origin/<branch> exists. A failed check counts as absent."""

    @abstractmethod
    def create_worktree(
        self,
        bare: Path,
        dest: Path,
        branch: str,
        base_branch: str,
        branch_exists: bool,
    ) -> None:
        """Add a worktree at dest.

        Tracks origin/<branch> when branch_exists, else creates <branch> from
        origin/<base_branch>.
        """
