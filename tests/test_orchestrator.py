"""
Unit Tests — Orchestrator
=========================
The loop runs against in-memory fakes for the type checker, version
control and fix agent; no compiler, no repository.
"""
import json
from unittest.mock import MagicMock

import pytest

from healer.agents.orchestrator import Orchestrator, plan_strategies
from healer.core.constants import (
    SYNTAX_IMPORT_DECLARATION,
    UNUSED_IMPORTS,
    MISSING_IMPORTS,
)
from healer.core.errors import TypeCheckerUnavailable, VersionControlError
from healer.parser.classification import build_categories
from healer.parser.diagnostic_parser import parse_diagnostics
from healer.state.run_tracker import RunTracker
from healer.strategies.registry import StrategyRegistry
from healer.utils import outcome_reasons as reasons

from conftest import FakeFixAgent, FakeTypeChecker, FakeVCS, StubStrategy, tsc_line, unused_output

SYNTAX_LINE = tsc_line("src/b.ts", 1, "TS1005", "';' expected.")
MISSING_LINE = tsc_line("src/c.ts", 1, "TS2304", "Cannot find name 'useState'.")


def registry_of(*pairs):
    registry = StrategyRegistry()
    for name, category in pairs:
        registry.register(StubStrategy(name, category))
    return registry


def make_orchestrator(settings, outputs, registry, fix_agent=None, vcs=None, **kwargs):
    orchestrator = Orchestrator(
        settings,
        type_checker=FakeTypeChecker(outputs),
        vcs=vcs or FakeVCS(),
        registry=registry,
        fix_agent=fix_agent or FakeFixAgent(),
        sleep=kwargs.pop("sleep", MagicMock()),
        **kwargs,
    )
    return orchestrator


# ===========================================================================
# 1. Plan
# ===========================================================================
def test_plan_follows_category_priority():
    diagnostics = parse_diagnostics("\n".join([unused_output(2), SYNTAX_LINE, MISSING_LINE]))
    categories = build_categories(diagnostics)
    strategies = [
        StubStrategy("unused", UNUSED_IMPORTS),
        StubStrategy("missing", MISSING_IMPORTS),
        StubStrategy("syntax", SYNTAX_IMPORT_DECLARATION),
        StubStrategy("any", "other-TS7006"),
    ]
    assert [s.name for s in plan_strategies(strategies, categories)] == [
        "syntax", "missing", "unused", "any",
    ]


# ===========================================================================
# 2. Loop
# ===========================================================================
def test_clean_project(make_settings):
    vcs = FakeVCS()
    orchestrator = make_orchestrator(make_settings(), [""], registry_of(("u", UNUSED_IMPORTS)), vcs=vcs)
    report = orchestrator.run()
    assert report.status == "clean"
    assert report.initial_total == 0
    assert report.results == []
    assert report.finalized
    assert vcs.events == []


def test_empty_category_skipped(make_settings):
    fix_agent = FakeFixAgent()
    registry = registry_of(("syntax", SYNTAX_IMPORT_DECLARATION), ("unused", UNUSED_IMPORTS))
    orchestrator = make_orchestrator(
        make_settings(), [unused_output(2), ""], registry, fix_agent=fix_agent,
    )
    report = orchestrator.run()

    skipped, ran = report.results
    assert skipped.strategy == "syntax"
    assert skipped.skipped is True
    assert skipped.duration_seconds == 0
    assert skipped.fix_count == 0
    assert skipped.outcome_reason == reasons.CATEGORY_EMPTY
    assert ran.strategy == "unused"
    assert [name for name, _ in fix_agent.calls] == ["unused"]
    assert report.summary.skipped == 1


def test_stops_when_total_reaches_zero(make_settings):
    fix_agent = FakeFixAgent()
    registry = registry_of(("syntax", SYNTAX_IMPORT_DECLARATION), ("unused", UNUSED_IMPORTS))
    initial = "\n".join([SYNTAX_LINE, unused_output(1)])
    orchestrator = make_orchestrator(make_settings(), [initial, ""], registry, fix_agent=fix_agent)

    report = orchestrator.run()

    assert [name for name, _ in fix_agent.calls] == ["syntax"]
    assert [r.strategy for r in report.results] == ["syntax"]
    assert report.status == "success"
    assert report.final_total == 0
    assert report.summary.success_rate == 100.0


def test_iterations_bounded(make_settings):
    settings = make_settings(max_iterations_per_strategy=3)
    outputs = [unused_output(n) for n in (5, 4, 3, 2)]
    orchestrator = make_orchestrator(settings, outputs, registry_of(("unused", UNUSED_IMPORTS)))

    report = orchestrator.run()

    assert [r.iteration for r in report.results] == [1, 2, 3]
    assert report.final_total == 2
    assert report.status == "partial"


def test_no_improvement_moves_on(make_settings):
    outputs = [unused_output(3)]
    fix_agent = FakeFixAgent()
    orchestrator = make_orchestrator(
        make_settings(), outputs, registry_of(("unused", UNUSED_IMPORTS)), fix_agent=fix_agent,
    )
    report = orchestrator.run()
    assert len(report.results) == 1
    assert report.results[0].outcome_reason == reasons.NO_IMPROVEMENT
    assert report.status == "unchanged"


def test_rollback_stops_strategy(make_settings):
    vcs = FakeVCS()
    registry = registry_of(("unused", UNUSED_IMPORTS), ("missing", MISSING_IMPORTS))
    initial = "\n".join([unused_output(2), MISSING_LINE])
    regressed = "\n".join([unused_output(6), MISSING_LINE])
    orchestrator = make_orchestrator(
        make_settings(), [initial, regressed, ""], registry, vcs=vcs,
    )

    report = orchestrator.run()

    first, second = report.results
    assert first.strategy == "missing"
    assert first.reverted is True
    assert second.strategy == "unused"
    assert second.success is True
    assert vcs.kinds() == ["checkpoint", "revert", "checkpoint", "commit"]
    assert report.summary.reverted == 1


def test_delay_between_runs(make_settings):
    sleep = MagicMock()
    settings = make_settings(strategy_delay=1.5, max_iterations_per_strategy=2)
    outputs = [unused_output(n) for n in (3, 2, 1)]
    orchestrator = make_orchestrator(settings, outputs, registry_of(("unused", UNUSED_IMPORTS)), sleep=sleep)
    orchestrator.run()
    sleep.assert_called_once_with(1.5)


def test_unhandled_categories_reported(make_settings):
    initial = "\n".join([unused_output(1), tsc_line("src/a.ts", 2, "TS2322", "Type mismatch.")])
    orchestrator = make_orchestrator(make_settings(), [initial], registry_of(("unused", UNUSED_IMPORTS)))
    report = orchestrator.run()
    assert report.unhandled_categories == ["type-compatibility"]
    assert report.suggestions


def test_dry_run_skips_git(make_settings):
    vcs = FakeVCS()
    fix_agent = FakeFixAgent()
    checker_outputs = [unused_output(2)]
    orchestrator = make_orchestrator(
        make_settings(dry_run=True), checker_outputs,
        registry_of(("unused", UNUSED_IMPORTS)), fix_agent=fix_agent, vcs=vcs,
    )
    report = orchestrator.run()
    assert vcs.available_checks == 0
    assert vcs.events == []
    assert report.dry_run is True
    assert report.results[0].dry_run is True
    assert report.final_total == 2


# ===========================================================================
# 3. Fatal errors
# ===========================================================================
def test_initial_type_check_failure_is_fatal(make_settings):
    orchestrator = make_orchestrator(
        make_settings(), [TypeCheckerUnavailable("npx missing")], registry_of(("u", UNUSED_IMPORTS)),
    )
    with pytest.raises(TypeCheckerUnavailable):
        orchestrator.run()


def test_git_unavailable_is_fatal(make_settings):
    class NoGit(FakeVCS):
        def ensure_available(self):
            raise VersionControlError("not a repo")

    orchestrator = make_orchestrator(
        make_settings(), [unused_output(1)], registry_of(("u", UNUSED_IMPORTS)), vcs=NoGit(),
    )
    with pytest.raises(VersionControlError):
        orchestrator.run()


# ===========================================================================
# 4. Report output and tracker
# ===========================================================================
def test_report_files_written(make_settings):
    settings = make_settings(write_report=True, write_markdown=True)
    orchestrator = make_orchestrator(settings, [unused_output(1), ""], registry_of(("unused", UNUSED_IMPORTS)))
    orchestrator.run()

    with open(settings.report_path, encoding="utf-8") as f:
        data = json.load(f)
    assert data["status"] == "success"
    assert data["initial_total"] == 1
    assert data["results"][0]["strategy"] == "unused"
    with open(settings.markdown_path, encoding="utf-8") as f:
        assert f.read().startswith("# Type Error Resolution Report")


def test_tracker_updated(make_settings):
    tracker = RunTracker()
    tracker.try_start("/p")
    orchestrator = make_orchestrator(
        make_settings(), [unused_output(2), ""], registry_of(("unused", UNUSED_IMPORTS)), tracker=tracker,
    )
    orchestrator.run()
    snap = tracker.snapshot()
    assert snap["phase"] == "finished"
    assert snap["initial_total"] == 2
    assert snap["current_total"] == 0
    assert snap["status"] == "success"
    assert snap["strategies_completed"] == 1


def test_crashed_initial_check_is_fatal(make_settings):
    orchestrator = make_orchestrator(
        make_settings(), ["FATAL ERROR: Reached heap limit"], registry_of(("u", UNUSED_IMPORTS)),
    )
    with pytest.raises(TypeCheckerUnavailable):
        orchestrator.run()
