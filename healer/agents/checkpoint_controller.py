"""
Checkpoint Controller
=====================
Runs ONE strategy iteration under a git checkpoint and decides whether
to keep it.

State machine:
    idle → checkpointed → running → evaluating → committed | rolled_back
                             └──────────────────→ failed   (raised / timed out)

Decision rule:
    after_total - before_total <= max_allowed_increase  → commit
    otherwise                                           → rollback

Rollback restores the tree to the checkpoint sha byte for byte and puts
the context back to the pre-run diagnostics; no re-check is needed.

Dry-run: no git and no re-check; the result only reports what the
strategy would have changed.
"""
import time
import logging
from enum import Enum
from typing import Callable, Optional

from healer.agents.fix_agent import FixAgent, FixApplication
from healer.agents.git_agent import VersionControl
from healer.core.config import Settings
from healer.core.constants import COMMIT_PREFIX
from healer.core.errors import StrategyTimeoutError
from healer.models.checkpoint import Checkpoint
from healer.models.strategy_result import StrategyResult
from healer.parser.classification import classify_diagnostic
from healer.services.diagnostics_service import DiagnosticsService
from healer.state.orchestrator_context import OrchestratorContext
from healer.strategies.base import FixStrategy
from healer.utils.logging_config import log_success
from healer.utils import outcome_reasons as reasons

logger = logging.getLogger(__name__)


class ControllerState(str, Enum):
    IDLE = "idle"
    CHECKPOINTED = "checkpointed"
    RUNNING = "running"
    EVALUATING = "evaluating"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"
    FAILED = "failed"
    SIMULATED = "simulated"   # dry-run terminal state


def checkpoint_label(strategy: str, category: str, iteration: int) -> str:
    return f"before {strategy} ({category}) iteration {iteration}"


def commit_message(strategy: str, category: str) -> str:
    return f"{COMMIT_PREFIX} {category} via {strategy}"


class CheckpointController:
    def __init__(
        self,
        settings: Settings,
        vcs: VersionControl,
        fix_agent: FixAgent,
        diagnostics: DiagnosticsService,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.settings = settings
        self.vcs = vcs
        self.fix_agent = fix_agent
        self.diagnostics = diagnostics
        self._clock = clock
        self.state = ControllerState.IDLE

    def _transition(self, state: ControllerState) -> None:
        logger.debug("Controller: %s → %s", self.state.value, state.value)
        self.state = state

    def run(
        self,
        strategy: FixStrategy,
        category: str,
        context: OrchestratorContext,
        iteration: int = 1,
    ) -> StrategyResult:
        """
        Checkpoint, apply, re-check, then commit or roll back.

        Raises
        ------
        VersionControlError
            A git step failed; the tree state can no longer be guaranteed.
        """
        self.state = ControllerState.IDLE
        started = self._clock()
        keys = set(strategy.target_categories) or {category}
        dry_run = self.settings.dry_run

        before_diagnostics = list(context.diagnostics)
        before_total = context.total
        before_category = context.category_count(keys)
        members = [d for d in before_diagnostics if classify_diagnostic(d) in keys]

        result = StrategyResult(
            strategy=strategy.name,
            category=category,
            iteration=iteration,
            before_total=before_total,
            after_total=before_total,
            before_category_count=before_category,
            after_category_count=before_category,
            dry_run=dry_run,
        )

        checkpoint: Optional[Checkpoint] = None
        if not dry_run:
            checkpoint = self.vcs.checkpoint(checkpoint_label(strategy.name, category, iteration))
            result.checkpoint = checkpoint
            self._transition(ControllerState.CHECKPOINTED)

        self._transition(ControllerState.RUNNING)
        deadline = self._clock() + self.settings.strategy_timeout
        try:
            application = self.fix_agent.apply(strategy, members, deadline)
        except StrategyTimeoutError as e:
            logger.error("Strategy %s timed out: %s", strategy.name, e)
            result.timed_out = True
            return self._fail(result, checkpoint, context, before_diagnostics,
                              reasons.STRATEGY_TIMEOUT, str(e), started)
        except Exception as e:
            logger.error("Strategy %s raised: %s", strategy.name, e, exc_info=True)
            return self._fail(result, checkpoint, context, before_diagnostics,
                              reasons.STRATEGY_EXCEPTION, f"{type(e).__name__}: {e}", started)

        result.files_changed = len(application.files_changed)
        result.fix_count = application.fix_count

        if dry_run:
            result.success = True
            result.outcome_reason = reasons.DRY_RUN
            self._transition(ControllerState.SIMULATED)
            return self._finish(result, started)

        if not application.changed:
            result.success = True
            result.outcome_reason = reasons.NO_CHANGES
            self._transition(ControllerState.COMMITTED)
            logger.info("%s changed no files", strategy.name)
            return self._finish(result, started)

        self._transition(ControllerState.EVALUATING)
        snapshot = self.diagnostics.collect(context)
        result.after_total = snapshot.total
        result.after_category_count = context.category_count(keys)
        increase = result.after_total - before_total

        if increase <= self.settings.max_allowed_increase:
            result.commit_sha = self.vcs.commit(commit_message(strategy.name, category))
            result.success = True
            result.outcome_reason = (
                reasons.IMPROVED if increase < 0 else reasons.NO_IMPROVEMENT
            )
            self._transition(ControllerState.COMMITTED)
            if increase < 0:
                log_success(
                    logger, "%s: %d → %d diagnostics (%d fix(es) in %d file(s))",
                    strategy.name, before_total, result.after_total,
                    result.fix_count, result.files_changed,
                )
            return self._finish(result, started)

        logger.warning(
            "%s increased diagnostics %d → %d (tolerance %d); rolling back",
            strategy.name, before_total, result.after_total,
            self.settings.max_allowed_increase,
        )
        self._rollback(checkpoint, context, before_diagnostics)
        result.reverted = True
        result.success = False
        result.outcome_reason = reasons.REGRESSION
        self._transition(ControllerState.ROLLED_BACK)
        return self._finish(result, started)

    # ------------------------------------------------------------------
    def _rollback(self, checkpoint: Optional[Checkpoint], context: OrchestratorContext,
                  before_diagnostics) -> None:
        if checkpoint is not None:
            self.vcs.revert(checkpoint)
        context.update(before_diagnostics)

    def _fail(self, result: StrategyResult, checkpoint: Optional[Checkpoint],
              context: OrchestratorContext, before_diagnostics, reason: str,
              message: str, started: float) -> StrategyResult:
        self._rollback(checkpoint, context, before_diagnostics)
        result.reverted = checkpoint is not None
        result.success = False
        result.outcome_reason = reason
        result.error_message = message
        self._transition(ControllerState.FAILED)
        return self._finish(result, started)

    def _finish(self, result: StrategyResult, started: float) -> StrategyResult:
        result.final_state = self.state.value
        result.duration_seconds = round(self._clock() - started, 3)
        return result
