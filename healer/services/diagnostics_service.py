"""
Diagnostics Service
===================
Reader + Parser glue: one call produces a snapshot of the project's
current diagnostics and keeps the orchestrator context up to date.

Measurement rule:
    Zero diagnostics is only believed when the checker exited 0. A non-zero
    exit with nothing parseable (tsc not installed, out of memory, a
    tsconfig error without a file) is a failed measurement and raises
    TypeCheckerUnavailable.

Fallback:
    When the type checker fails transiently (timeout / unavailable) after
    all retries, the snapshot carries the context's last known count and
    diagnostics and is flagged ``stale``. With no known count yet the
    failure propagates: the initial measurement cannot be guessed.
"""
import logging
from dataclasses import dataclass, field
from typing import List

from healer.core.errors import TransientToolFailure, TypeCheckerUnavailable
from healer.executor.type_checker import TypeChecker
from healer.models.diagnostic import Diagnostic
from healer.parser.diagnostic_parser import ParseResult, parse_output
from healer.state.orchestrator_context import OrchestratorContext

logger = logging.getLogger(__name__)


@dataclass
class DiagnosticSnapshot:
    diagnostics: List[Diagnostic] = field(default_factory=list)
    total: int = 0
    stale: bool = False


class DiagnosticsService:
    def __init__(self, type_checker: TypeChecker, project_root: str = "") -> None:
        self.type_checker = type_checker
        self.project_root = project_root

    def _measure(self) -> ParseResult:
        raw = self.type_checker.run()
        result = parse_output(raw.output, self.project_root)
        if raw.exit_code != 0 and result.total == 0:
            logger.debug("Unparseable type-check output:\n%s", raw.log_excerpt)
            raise TypeCheckerUnavailable(
                f"Type checker exited {raw.exit_code} without reporting any diagnostic"
            )
        logger.info(
            "Type check: %d diagnostic(s) | exit=%d | attempts=%d",
            result.total, raw.exit_code, raw.attempts,
        )
        return result

    def collect(self, context: OrchestratorContext) -> DiagnosticSnapshot:
        """Run the checker, parse its output and record the result in context."""
        try:
            result = self._measure()
        except TransientToolFailure as e:
            if not context.has_count:
                raise
            logger.warning(
                "Type check failed (%s); using last known count %d",
                e, context.last_known_count,
            )
            return DiagnosticSnapshot(
                diagnostics=list(context.diagnostics),
                total=context.total,
                stale=True,
            )

        context.update(result.diagnostics)
        return DiagnosticSnapshot(diagnostics=list(result.diagnostics), total=result.total)
