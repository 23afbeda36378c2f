"""
Orchestrator
============
Drives the Check → Classify → (Checkpoint → Fix → Re-check → Commit/Rollback)
loop for one TypeScript project.

Loop:
    - Ensure git is usable (skipped in dry-run); initial type check
    - Zero diagnostics → report "clean" and stop
    - Plan: every registered strategy, ordered by the priority of its
      target category in the initial classification
    - Per strategy: skip when its category is empty, otherwise up to
      max_iterations_per_strategy controller runs, stopping early on
      rollback/failure, on no category improvement, or when the total is 0
    - Total reaches 0 → stop; no lower-priority strategy runs
    - Finalize the report, write JSON (and Markdown when enabled)

Termination:
    bounded by len(plan) * max_iterations_per_strategy controller runs.

Fatal errors (VersionControlError, a failed initial type check) propagate.
"""
import time
import logging
from typing import Callable, Dict, List, Optional

from healer.agents.checkpoint_controller import CheckpointController, ControllerState
from healer.agents.fix_agent import FixAgent
from healer.agents.git_agent import GitAgent, VersionControl
from healer.core.config import Settings
from healer.core.output_formatter import format_category, format_result, next_steps
from healer.executor.command_resolver import resolve_type_check_command
from healer.executor.type_checker import TypeChecker
from healer.models.pattern_category import PatternCategory
from healer.models.report import OrchestrationReport
from healer.models.strategy_result import StrategyResult
from healer.parser.classification import base_priority, build_categories
from healer.services.backup_service import BackupService
from healer.services.diagnostics_service import DiagnosticsService
from healer.services.results_writer import ResultsWriter
from healer.state.orchestrator_context import OrchestratorContext
from healer.state.run_tracker import RunTracker
from healer.strategies.base import FixStrategy
from healer.strategies.registry import StrategyRegistry, default_registry
from healer.utils.logging_config import log_success
from healer.utils.outcome_reasons import CATEGORY_EMPTY, is_rollback_reason

logger = logging.getLogger(__name__)


def build_type_checker(settings: Settings) -> TypeChecker:
    resolved = resolve_type_check_command(settings.project_root, settings.type_check_command)
    logger.info("Type-check command (%s): %s", resolved.source, resolved.display)
    return TypeChecker(
        command=resolved.argv,
        cwd=settings.project_root,
        timeout=settings.type_check_timeout,
        timeout_step=settings.type_check_timeout_step,
        retries=settings.type_check_retries,
        retry_delay=settings.type_check_retry_delay,
    )


def plan_strategies(
    strategies: List[FixStrategy],
    categories: List[PatternCategory],
) -> List[FixStrategy]:
    """
    Order strategies by the priority of their target categories.

    A target absent from the classification counts with its base weight;
    ties keep registration order.
    """
    priorities: Dict[str, float] = {c.key: c.priority for c in categories}

    def priority(strategy: FixStrategy) -> float:
        return max(
            (priorities.get(key, base_priority(key)) for key in strategy.target_categories),
            default=0.0,
        )

    return sorted(strategies, key=lambda s: -priority(s))


class Orchestrator:
    """
    One orchestration run over a project.

    Collaborators are injectable so the loop can run against in-memory
    fakes: ``type_checker`` needs ``run() -> RawOutput``, ``vcs`` implements
    VersionControl.
    """

    def __init__(
        self,
        settings: Settings,
        type_checker: Optional[TypeChecker] = None,
        vcs: Optional[VersionControl] = None,
        registry: Optional[StrategyRegistry] = None,
        fix_agent: Optional[FixAgent] = None,
        tracker: Optional[RunTracker] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.settings = settings
        root = settings.project_root

        self.type_checker = type_checker or build_type_checker(settings)
        self.vcs = vcs or GitAgent(root, excluded_paths=settings.excluded_paths)
        self.registry = registry or default_registry(settings.disabled_strategies)

        if fix_agent is None:
            backup = None
            if settings.create_backup and not settings.dry_run:
                backup = BackupService(root, settings.backup_dir)
            fix_agent = FixAgent(
                root,
                dry_run=settings.dry_run,
                backup=backup,
                extra_ignores=tuple(settings.excluded_paths),
                clock=clock,
            )
        self.fix_agent = fix_agent

        self.diagnostics = DiagnosticsService(self.type_checker, root)
        self.controller = CheckpointController(
            settings, self.vcs, self.fix_agent, self.diagnostics, clock=clock,
        )
        self.tracker = tracker
        self._sleep = sleep
        self._runs = 0

    # ------------------------------------------------------------------
    # Main loop
    # ------------------------------------------------------------------
    def run(self) -> OrchestrationReport:
        settings = self.settings
        context = OrchestratorContext(
            settings=settings,
            report=OrchestrationReport(project_root=settings.project_root, dry_run=settings.dry_run),
        )
        report = context.report
        self._runs = 0

        logger.info("Starting error resolution in %s%s",
                    settings.project_root, " (dry-run)" if settings.dry_run else "")

        if not settings.dry_run:
            self.vcs.ensure_available()

        snapshot = self.diagnostics.collect(context)
        categories = build_categories(snapshot.diagnostics)
        report.initial_total = snapshot.total
        report.categories = [c.summary() for c in categories]
        report.unhandled_categories = [
            c.key for c in categories if not self.registry.handles(c.key)
        ]
        if self.tracker:
            self.tracker.on_initial(snapshot.total)

        if snapshot.total == 0:
            log_success(logger, "No type errors found; nothing to do")
            return self._finish(context)

        logger.info("Initial diagnostics: %d in %d categor(ies)", snapshot.total, len(categories))
        for c in categories:
            logger.info("  %s", format_category(c))
        if report.unhandled_categories:
            logger.info("No strategy for: %s", ", ".join(report.unhandled_categories))

        for strategy in plan_strategies(self.registry.strategies(), categories):
            self._run_strategy(strategy, context)
            if context.total == 0:
                log_success(logger, "All type errors resolved after %s", strategy.name)
                break

        return self._finish(context)

    def _run_strategy(self, strategy: FixStrategy, context: OrchestratorContext) -> None:
        keys = strategy.target_categories or (strategy.name,)
        # label the run with the first target that has members
        category = next((k for k in keys if context.category_count((k,))), keys[0])

        for iteration in range(1, self.settings.max_iterations_per_strategy + 1):
            if context.category_count(keys) == 0:
                if iteration == 1:
                    self._record(context, StrategyResult(
                        strategy=strategy.name,
                        category=category,
                        iteration=0,
                        before_total=context.total,
                        after_total=context.total,
                        skipped=True,
                        success=False,
                        dry_run=self.settings.dry_run,
                        final_state=ControllerState.IDLE.value,
                        outcome_reason=CATEGORY_EMPTY,
                    ))
                    logger.info("Skipping %s: no %s diagnostics", strategy.name, category)
                break

            if self._runs:
                self._sleep(self.settings.strategy_delay)
            if self.tracker:
                self.tracker.on_strategy(strategy.name, iteration)

            logger.info("Running %s on %s (iteration %d, %d diagnostic(s))",
                        strategy.name, category, iteration, context.category_count(keys))
            result = self.controller.run(strategy, category, context, iteration)
            self._runs += 1
            self._record(context, result)
            logger.info(format_result(result))

            if is_rollback_reason(result.outcome_reason) or result.final_state == ControllerState.FAILED.value:
                break
            if context.total == 0:
                break
            if result.category_improvement <= 0:
                break

        context.strategies_completed += 1
        if self.tracker:
            self.tracker.on_strategy_done(context.strategies_completed)

    def _record(self, context: OrchestratorContext, result: StrategyResult) -> None:
        context.report.add_result(result)
        if self.tracker:
            self.tracker.on_result(context.total)

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------
    def _finish(self, context: OrchestratorContext) -> OrchestrationReport:
        report = context.report
        report.finalize(context.total)
        remaining = build_categories(context.diagnostics)
        report.suggestions = next_steps(report, remaining)

        if self.settings.write_report:
            ResultsWriter.write_json(report, self.settings.report_path)
        if self.settings.write_markdown:
            ResultsWriter.write_markdown(report, self.settings.markdown_path)
        if self.tracker:
            self.tracker.finish(report.status)

        logger.info("Finished: %s (%d → %d) in %.1fs",
                    report.status, report.initial_total, report.final_total,
                    report.duration_seconds)
        return report
