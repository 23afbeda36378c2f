"""
Git Agent
=========
Version-control collaborator for the checkpoint controller: checkpoint,
commit and revert the working tree with plain git subprocess calls.

Safety:
    - Backup and log directories are never staged and never cleaned.
    - Commits use --no-verify so project hooks cannot veto a checkpoint.
    - Any git failure raises VersionControlError; without a working
      rollback the run must stop.
"""
import subprocess
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import List, Sequence

from healer.core.constants import CHECKPOINT_PREFIX
from healer.core.errors import VersionControlError
from healer.models.checkpoint import Checkpoint

logger = logging.getLogger(__name__)


class VersionControl(ABC):
    """Narrow interface the controller depends on. Fakes implement this in tests."""

    @abstractmethod
    def ensure_available(self) -> None: ...

    @abstractmethod
    def checkpoint(self, label: str) -> Checkpoint: ...

    @abstractmethod
    def commit(self, message: str) -> str: ...

    @abstractmethod
    def revert(self, checkpoint: Checkpoint) -> None: ...


class GitAgent(VersionControl):
    """
    Git-backed VersionControl for one working tree.

    Parameters
    ----------
    repo_path : str
        Root of the working tree.
    excluded_paths : Sequence[str]
        Paths (relative to the root) never staged nor removed by clean.
    """

    def __init__(self, repo_path: str, excluded_paths: Sequence[str] = ()) -> None:
        self.repo_path = repo_path
        self.excluded_paths = [p for p in excluded_paths if p]
        self.commit_count = 0

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------
    def _git(self, *args: str, check: bool = True) -> subprocess.CompletedProcess:
        try:
            return subprocess.run(
                ["git", *args],
                cwd=self.repo_path,
                check=check,
                capture_output=True,
                text=True,
            )
        except subprocess.CalledProcessError as e:
            raise VersionControlError(
                f"git {' '.join(args)} failed: {(e.stderr or e.stdout or '').strip()}"
            ) from e
        except OSError as e:
            raise VersionControlError(f"git is not available: {e}") from e

    def _exclude_pathspecs(self) -> List[str]:
        return [f":(exclude){p}" for p in self.excluded_paths]

    def _stage_all(self) -> bool:
        """Stage every change outside the excluded paths. True if anything is staged."""
        self._git("add", "-A", "--", ".", *self._exclude_pathspecs())
        # returncode 0 = no differences
        return self._git("diff", "--cached", "--quiet", check=False).returncode != 0

    def _has_head(self) -> bool:
        return self._git("rev-parse", "--verify", "--quiet", "HEAD", check=False).returncode == 0

    def head_sha(self) -> str:
        return self._git("rev-parse", "HEAD").stdout.strip()

    # ------------------------------------------------------------------
    # VersionControl
    # ------------------------------------------------------------------
    def ensure_available(self) -> None:
        out = self._git("rev-parse", "--is-inside-work-tree", check=False)
        if out.returncode != 0 or out.stdout.strip() != "true":
            raise VersionControlError(f"Not a git working tree: {self.repo_path}")

    def checkpoint(self, label: str) -> Checkpoint:
        """Commit the current tree (when dirty) and record HEAD as the rollback target."""
        message = f"{CHECKPOINT_PREFIX} {label}"
        staged = self._stage_all()

        committed = False
        if staged or not self._has_head():
            args = ["commit", "--no-verify", "-m", message]
            if not staged:
                args.insert(1, "--allow-empty")
            self._git(*args)
            committed = True
            logger.info("Checkpoint created: %s", message)
        else:
            logger.info("Checkpoint (tree clean, nothing to commit): %s", message)

        return Checkpoint(
            label=label,
            timestamp=datetime.now(timezone.utc),
            committed=committed,
            sha=self.head_sha(),
        )

    def commit(self, message: str) -> str:
        """Commit all changes. Returns the new sha, or "" when nothing changed."""
        if not self._stage_all():
            logger.info("Nothing to commit for: %s", message)
            return ""
        self._git("commit", "--no-verify", "-m", message)
        self.commit_count += 1
        sha = self.head_sha()
        logger.info("Committed %s: %s", sha[:8], message)
        return sha

    def revert(self, checkpoint: Checkpoint) -> None:
        """Reset tracked files to the checkpoint and drop new untracked files."""
        if not checkpoint.sha:
            raise VersionControlError(f"Checkpoint has no sha: {checkpoint.label}")
        self._git("reset", "--hard", checkpoint.sha)
        clean_args = ["clean", "-fd"]
        for p in self.excluded_paths:
            clean_args.extend(["-e", p])
        self._git(*clean_args)
        logger.warning("Rolled back to %s (%s)", checkpoint.sha[:8], checkpoint.label)
