"""
Strategy Result Model
=====================
Pydantic model tracking the outcome of one strategy run through the
checkpoint controller.

Fields:
    strategy                — registered strategy name
    category                — pattern category key the run targeted
    iteration               — 1-based iteration of this strategy
    before_total            — total diagnostics before the run
    after_total             — total measured after the run, before any rollback
    before_category_count   — diagnostics in the target category before
    after_category_count    — diagnostics in the target category after
    files_changed           — files the strategy rewrote
    fix_count               — individual rewrites applied
    success                 — True if the run stayed within tolerance
    reverted                — True if the tree was reset to the checkpoint
    timed_out               — True if the run exceeded its time budget
    skipped                 — True if the category was already empty
    dry_run                 — True if files were not written
    final_state             — terminal controller state
    outcome_reason          — see outcome_reasons.py
    duration_seconds        — wall clock time for the run
    error_message           — strategy exception text, if any
    checkpoint              — the checkpoint taken before the run
    commit_sha              — the "fix:" commit, when one was created
"""
from typing import Optional
from pydantic import BaseModel

from .checkpoint import Checkpoint


class StrategyResult(BaseModel):
    strategy: str
    category: str
    iteration: int = 1
    before_total: int = 0
    after_total: int = 0
    before_category_count: int = 0
    after_category_count: int = 0
    files_changed: int = 0
    fix_count: int = 0
    success: bool = False
    reverted: bool = False
    timed_out: bool = False
    skipped: bool = False
    dry_run: bool = False
    final_state: str = "idle"
    outcome_reason: str = ""
    duration_seconds: float = 0.0
    error_message: str = ""
    checkpoint: Optional[Checkpoint] = None
    commit_sha: str = ""

    @property
    def improvement(self) -> int:
        """Positive when the total diagnostic count went down."""
        return self.before_total - self.after_total

    @property
    def category_improvement(self) -> int:
        return self.before_category_count - self.after_category_count
