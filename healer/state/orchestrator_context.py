"""
Orchestrator Context
Explicit state passed through every step of one orchestration run:
settings, the last known diagnostic count and list, and the report
being accumulated. Replaces module-level counters.
"""
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from healer.core.config import Settings
from healer.models.diagnostic import Diagnostic
from healer.models.report import OrchestrationReport
from healer.parser.classification import count_in_categories


@dataclass
class OrchestratorContext:
    settings: Settings
    report: OrchestrationReport = field(default_factory=OrchestrationReport)
    last_known_count: Optional[int] = None
    diagnostics: List[Diagnostic] = field(default_factory=list)
    strategies_completed: int = 0

    @property
    def has_count(self) -> bool:
        return self.last_known_count is not None

    @property
    def total(self) -> int:
        return self.last_known_count or 0

    def update(self, diagnostics: List[Diagnostic]) -> None:
        self.diagnostics = list(diagnostics)
        self.last_known_count = len(self.diagnostics)

    def category_count(self, keys: Iterable[str]) -> int:
        return count_in_categories(self.diagnostics, keys)
