"""
Output Formatter
================
Single source of the console and report strings.

DETERMINISM CONTRACT:
  - Never reads the environment or the clock.
  - Same inputs → same strings, byte for byte.

Diagnostic line format:
    {CODE} error in {file} line {line} → Fix: {fix_description}
"""
from typing import Dict, Iterable, List

from healer.core.constants import (
    ARROW,
    SYNTAX_IMPORT_DECLARATION,
    DUPLICATE_IMPORTS,
    UNUSED_IMPORTS,
    MISSING_IMPORTS,
    TYPE_COMPATIBILITY,
    EVENT_HANDLER_TYPES,
    OTHER_PREFIX,
)
from healer.models.diagnostic import Diagnostic
from healer.models.pattern_category import PatternCategory
from healer.models.report import OrchestrationReport
from healer.models.strategy_result import StrategyResult
from healer.parser.classification import classify_diagnostic


# ---------------------------------------------------------------------------
# Fix Descriptions
# ---------------------------------------------------------------------------
# All values are lowercase phrases.
FIX_DESCRIPTIONS: Dict[str, str] = {
    SYNTAX_IMPORT_DECLARATION: "repair the import declaration syntax",
    DUPLICATE_IMPORTS:         "merge duplicate imports of the same module",
    UNUSED_IMPORTS:            "remove the unused import",
    MISSING_IMPORTS:           "add the missing import statement",
    TYPE_COMPATIBILITY:        "align the value with the expected type",
    EVENT_HANDLER_TYPES:       "cast the handler to the expected event listener type",
    f"{OTHER_PREFIX}TS7006":   "annotate the parameter type",
    f"{OTHER_PREFIX}TS7019":   "annotate the rest parameter type",
}
MANUAL_REVIEW = "review manually"


def describe_category(key: str) -> str:
    return FIX_DESCRIPTIONS.get(key, MANUAL_REVIEW)


def format_diagnostic(diagnostic: Diagnostic) -> str:
    """
    Canonical one-line rendering of a Diagnostic.

    Example:
        TS6133 error in src/App.tsx line 3 → Fix: remove the unused import
    """
    fix = describe_category(classify_diagnostic(diagnostic))
    return (
        f"{diagnostic.code} error in {diagnostic.file} line {diagnostic.line} "
        f"{ARROW} Fix: {fix}"
    )


def format_category(category: PatternCategory) -> str:
    return (
        f"{category.key}: {category.count} diagnostic(s) in "
        f"{category.file_count} file(s) (priority {category.priority:.2f})"
    )


def format_result(result: StrategyResult) -> str:
    """One line per strategy run for the console and the Markdown report."""
    if result.skipped:
        return f"[SKIPPED] {result.strategy} ({result.category}): category empty"
    state = result.final_state.upper()
    line = (
        f"[{state}] {result.strategy} ({result.category}) #{result.iteration}: "
        f"{result.before_total} {ARROW} {result.after_total}, "
        f"{result.fix_count} fix(es) in {result.files_changed} file(s)"
    )
    if result.outcome_reason:
        line += f" [{result.outcome_reason}]"
    return line


def next_steps(report: OrchestrationReport, remaining: Iterable[PatternCategory] = ()) -> List[str]:
    """Suggestions printed after the summary and stored in the report."""
    if report.final_total == 0:
        return [
            "All type errors resolved.",
            "Run the project build to verify the fixes.",
        ]

    steps = [
        f"{report.final_total} diagnostic(s) remain; run the type checker to list them.",
        "Run the healer again; some fixes only apply once earlier errors are gone.",
    ]
    for category in remaining:
        steps.append(
            f"{category.key} ({category.count}): {describe_category(category.key)}."
        )
    if report.summary.reverted:
        steps.append("Some strategies were rolled back; check the report for regressions.")
    return steps


def format_summary(report: OrchestrationReport) -> List[str]:
    """Summary block printed to stdout at the end of a run."""
    s = report.summary
    lines = [
        "=" * 60,
        "TYPE ERROR RESOLUTION SUMMARY",
        "=" * 60,
        f"Status:          {report.status}",
        f"Diagnostics:     {report.initial_total} {ARROW} {report.final_total}",
        f"Errors fixed:    {s.errors_fixed} ({s.success_rate:.1f}%)",
        f"Strategies run:  {s.strategies_run} "
        f"(committed {s.successful}, reverted {s.reverted}, "
        f"timed out {s.timed_out}, skipped {s.skipped})",
        f"Total fixes:     {s.total_fixes}",
        f"Duration:        {report.duration_seconds:.1f}s",
    ]
    if report.dry_run:
        lines.append("Mode:            dry-run (no files written)")
    if report.unhandled_categories:
        lines.append(f"Unhandled:       {', '.join(report.unhandled_categories)}")
    if report.suggestions:
        lines.append("")
        lines.append("Next steps:")
        lines.extend(f"  - {step}" for step in report.suggestions)
    lines.append("=" * 60)
    return lines
