"""
Pattern Category Model
Pydantic model for a bucket of diagnostics sharing one repair approach.
Recomputed from scratch on every classification; never mutated.
"""
from typing import List, Tuple
from pydantic import BaseModel, ConfigDict

from .diagnostic import Diagnostic


class PatternCategory(BaseModel):
    model_config = ConfigDict(frozen=True)

    key: str
    members: Tuple[Diagnostic, ...] = ()
    priority: float = 0.0

    @property
    def count(self) -> int:
        return len(self.members)

    @property
    def files(self) -> List[str]:
        """Distinct files in first-seen order."""
        return list(dict.fromkeys(d.file for d in self.members))

    @property
    def file_count(self) -> int:
        return len(self.files)

    def summary(self) -> dict:
        return {
            "key": self.key,
            "count": self.count,
            "file_count": self.file_count,
            "files": self.files,
            "priority": self.priority,
        }
