"""
Orchestration Report Model
==========================
Pydantic model accumulating the record of one orchestration run.

Lifecycle:
    - Created when the run starts (start_time, initial_total, categories)
    - StrategyResults appended via add_result() as the loop progresses
    - finalize() stamps end_time, final_total, status, summary
    - Serialised once by ResultsWriter; finalize() freezes the report, so
      any later add_result() raises ReportFinalizedError

Status values:
    clean       — no diagnostics at the start
    success     — diagnostics reached zero
    partial     — fewer diagnostics than at the start
    unchanged   — no net improvement
"""
from datetime import datetime, timezone
from typing import List, Optional
from pydantic import BaseModel, Field

from healer.core.errors import ReportFinalizedError
from .strategy_result import StrategyResult


class ReportSummary(BaseModel):
    strategies_run: int = 0
    successful: int = 0
    reverted: int = 0
    timed_out: int = 0
    skipped: int = 0
    total_fixes: int = 0
    errors_fixed: int = 0
    success_rate: float = 0.0   # percent of initial diagnostics removed


class OrchestrationReport(BaseModel):
    start_time: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    end_time: Optional[datetime] = None
    project_root: str = ""
    dry_run: bool = False
    initial_total: int = 0
    final_total: int = 0
    status: str = "pending"
    categories: List[dict] = []
    unhandled_categories: List[str] = []
    results: List[StrategyResult] = []
    summary: ReportSummary = Field(default_factory=ReportSummary)
    suggestions: List[str] = []
    finalized: bool = False

    def add_result(self, result: StrategyResult) -> None:
        if self.finalized:
            raise ReportFinalizedError("Report already finalized")
        self.results.append(result)

    @property
    def duration_seconds(self) -> float:
        end = self.end_time or datetime.now(timezone.utc)
        return round((end - self.start_time).total_seconds(), 2)

    def finalize(self, final_total: int, suggestions: Optional[List[str]] = None) -> None:
        """Stamp the end of the run and compute the summary. Call once."""
        if self.finalized:
            raise ReportFinalizedError("Report already finalized")

        self.end_time = datetime.now(timezone.utc)
        self.final_total = final_total

        if self.initial_total == 0:
            self.status = "clean"
        elif final_total == 0:
            self.status = "success"
        elif final_total < self.initial_total:
            self.status = "partial"
        else:
            self.status = "unchanged"

        executed = [r for r in self.results if not r.skipped]
        errors_fixed = max(0, self.initial_total - final_total)
        self.summary = ReportSummary(
            strategies_run=len(executed),
            successful=sum(1 for r in executed if r.success),
            reverted=sum(1 for r in executed if r.reverted),
            timed_out=sum(1 for r in executed if r.timed_out),
            skipped=sum(1 for r in self.results if r.skipped),
            total_fixes=sum(r.fix_count for r in executed if r.success),
            errors_fixed=errors_fixed,
            success_rate=(
                round(errors_fixed / self.initial_total * 100, 1)
                if self.initial_total else 0.0
            ),
        )
        self.suggestions = list(suggestions or [])
        self.finalized = True
