"""
Fix Agent
=========
Applies one fix strategy across every file of a pattern category.

Per file:
    1. Skip ignored paths (node_modules, dist, ...), non-sources and
       files that no longer exist
    2. Refuse paths resolving outside the project root
    3. Read → strategy.apply(content, file diagnostics)
    4. Back up (first touch this run) and write, unless dry-run

The strategy budget is checked between files: once the deadline has
passed StrategyTimeoutError is raised and the controller rolls back.
I/O errors propagate to the controller as well.
"""
import os
import time
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence

from healer.core.errors import StrategyTimeoutError
from healer.models.diagnostic import Diagnostic
from healer.services.backup_service import BackupService
from healer.strategies.base import FixStrategy
from healer.utils.ignore_rules import is_source_file, should_ignore

logger = logging.getLogger(__name__)


@dataclass
class FixApplication:
    """What one strategy run did to the tree."""
    files_changed: List[str] = field(default_factory=list)
    fix_count: int = 0
    files_skipped: List[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.files_changed)


def group_by_file(diagnostics: Sequence[Diagnostic]) -> Dict[str, List[Diagnostic]]:
    groups: Dict[str, List[Diagnostic]] = {}
    for d in diagnostics:
        groups.setdefault(d.file, []).append(d)
    return groups


class FixAgent:
    def __init__(
        self,
        project_root: str,
        dry_run: bool = False,
        backup: Optional[BackupService] = None,
        extra_ignores: tuple[str, ...] = (),
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.project_root = os.path.abspath(project_root)
        self.dry_run = dry_run
        self.backup = backup
        self.extra_ignores = extra_ignores
        self._clock = clock

    def _resolve(self, rel_path: str) -> Optional[str]:
        abs_path = os.path.normpath(os.path.join(self.project_root, rel_path))
        if os.path.commonpath([abs_path, self.project_root]) != self.project_root:
            logger.error("Refusing to touch file outside project root: %s", rel_path)
            return None
        return abs_path

    def apply(
        self,
        strategy: FixStrategy,
        diagnostics: Sequence[Diagnostic],
        deadline: Optional[float] = None,
    ) -> FixApplication:
        """
        Run ``strategy`` over every file referenced by ``diagnostics``.

        Raises
        ------
        StrategyTimeoutError
            The deadline (clock value) passed before all files were done.
        OSError
            A file could not be read or written.
        """
        application = FixApplication()

        for rel_path, file_diagnostics in group_by_file(diagnostics).items():
            if deadline is not None and self._clock() > deadline:
                raise StrategyTimeoutError(
                    f"{strategy.name} exceeded its time budget after "
                    f"{len(application.files_changed)} file(s)"
                )

            if should_ignore(rel_path, self.extra_ignores) or not is_source_file(rel_path):
                application.files_skipped.append(rel_path)
                continue

            abs_path = self._resolve(rel_path)
            if abs_path is None or not os.path.isfile(abs_path):
                if abs_path is not None:
                    logger.warning("File reported by the type checker is missing: %s", rel_path)
                application.files_skipped.append(rel_path)
                continue

            with open(abs_path, "r", encoding="utf-8", newline="") as f:
                original = f.read()

            outcome = strategy.apply(original, file_diagnostics)
            if outcome.content == original:
                continue

            application.files_changed.append(rel_path)
            application.fix_count += outcome.fix_count

            if self.dry_run:
                logger.info("[dry-run] %s would apply %d fix(es) to %s",
                            strategy.name, outcome.fix_count, rel_path)
                continue

            if self.backup is not None:
                self.backup.backup(rel_path)
            with open(abs_path, "w", encoding="utf-8", newline="") as f:
                f.write(outcome.content)
            logger.debug("%s: %d fix(es) in %s", strategy.name, outcome.fix_count, rel_path)

        return application
