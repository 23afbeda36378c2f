"""
Backup Service
==============
Copies each source file once, before its first rewrite in a run, into
``<project>/<backup_dir>/backup-<timestamp>/<relative path>``.
"""
import os
import shutil
import logging
from datetime import datetime
from typing import Optional, Set

logger = logging.getLogger(__name__)


class BackupService:
    def __init__(self, project_root: str, backup_dir: str) -> None:
        self.project_root = project_root
        self.backup_root = os.path.join(project_root, backup_dir)
        self._run_dir: Optional[str] = None
        self._saved: Set[str] = set()

    @property
    def run_dir(self) -> str:
        if self._run_dir is None:
            stamp = datetime.now().strftime("%Y%m%dT%H%M%S")
            self._run_dir = os.path.join(self.backup_root, f"backup-{stamp}")
        return self._run_dir

    @property
    def saved_count(self) -> int:
        return len(self._saved)

    def backup(self, rel_path: str) -> Optional[str]:
        """Copy the file if not already saved this run. Returns the backup path."""
        if rel_path in self._saved:
            return None
        source = os.path.join(self.project_root, rel_path)
        target = os.path.join(self.run_dir, rel_path)
        os.makedirs(os.path.dirname(target), exist_ok=True)
        shutil.copy2(source, target)
        self._saved.add(rel_path)
        logger.debug("Backed up %s → %s", rel_path, target)
        return target
