"""
Shared fixtures: in-memory fakes for the type checker, version control
and fix agent, plus a throwaway git repository.
"""
import os
import shutil
import subprocess
from datetime import datetime, timezone

import pytest

from healer.agents.fix_agent import FixApplication
from healer.agents.git_agent import VersionControl
from healer.core.config import Settings
from healer.executor.type_checker import RawOutput
from healer.models.checkpoint import Checkpoint
from healer.models.diagnostic import Diagnostic
from healer.strategies.base import FixStrategy, StrategyOutcome


def tsc_line(file, line, code, message, column=1):
    return f"{file}({line},{column}): error {code}: {message}"


def unused_output(count, file="src/a.ts"):
    """tsc output with ``count`` TS6133 diagnostics."""
    return "\n".join(
        tsc_line(file, i, "TS6133", f"'v{i}' is declared but its value is never read.")
        for i in range(1, count + 1)
    )


class FakeTypeChecker:
    """Returns the queued outputs in order; the last one repeats."""

    def __init__(self, outputs):
        self.outputs = list(outputs)
        self.calls = 0

    def run(self):
        self.calls += 1
        item = self.outputs.pop(0) if len(self.outputs) > 1 else self.outputs[0]
        if isinstance(item, Exception):
            raise item
        return RawOutput(exit_code=2 if item.strip() else 0, output=item)


class FakeVCS(VersionControl):
    def __init__(self):
        self.events = []
        self.available_checks = 0

    def ensure_available(self):
        self.available_checks += 1

    def checkpoint(self, label):
        self.events.append(("checkpoint", label))
        return Checkpoint(
            label=label,
            timestamp=datetime.now(timezone.utc),
            committed=True,
            sha=f"sha{len(self.events)}",
        )

    def commit(self, message):
        self.events.append(("commit", message))
        return f"commit{len(self.events)}"

    def revert(self, checkpoint):
        self.events.append(("revert", checkpoint.sha))

    def kinds(self):
        return [kind for kind, _ in self.events]


class FakeFixAgent:
    """Pretends to rewrite one file per call unless told otherwise."""

    def __init__(self, files_changed=("src/a.ts",), fix_count=1, error=None):
        self.files_changed = list(files_changed)
        self.fix_count = fix_count
        self.error = error
        self.calls = []

    def apply(self, strategy, diagnostics, deadline=None):
        self.calls.append((strategy.name, len(diagnostics)))
        if self.error is not None:
            raise self.error
        return FixApplication(files_changed=list(self.files_changed), fix_count=self.fix_count)


class StubStrategy(FixStrategy):
    def __init__(self, name, category):
        self.name = name
        self.target_categories = (category,)

    def apply(self, content, diagnostics=()):
        return StrategyOutcome(content, 0)


@pytest.fixture
def make_settings(tmp_path):
    def _make(**overrides):
        values = dict(
            project_root=str(tmp_path),
            strategy_delay=0,
            type_check_retry_delay=0,
            create_backup=False,
            write_report=False,
        )
        values.update(overrides)
        return Settings(**values)
    return _make


@pytest.fixture
def make_diagnostic():
    def _make(code="TS6133", message="'x' is declared but its value is never read.",
              file="src/a.ts", line=1, column=1):
        return Diagnostic(file=file, line=line, column=column, code=code, message=message)
    return _make


requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")


def git(repo, *args):
    return subprocess.run(
        ["git", *args], cwd=repo, check=True, capture_output=True, text=True,
    ).stdout


@pytest.fixture
def git_repo(tmp_path):
    repo = tmp_path / "repo"
    repo.mkdir()
    git(repo, "init", "-q")
    git(repo, "config", "user.email", "healer@example.com")
    git(repo, "config", "user.name", "Healer Tests")
    git(repo, "config", "commit.gpgsign", "false")
    (repo / "src").mkdir()
    (repo / "src" / "a.ts").write_text("export const a = 1;\n", encoding="utf-8")
    git(repo, "add", "-A")
    git(repo, "commit", "-q", "-m", "initial")
    return repo


def read_bytes(path):
    with open(path, "rb") as f:
        return f.read()


def tree_snapshot(root):
    """Map of relative path → bytes for every file outside .git."""
    snapshot = {}
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = [d for d in dirnames if d != ".git"]
        for name in filenames:
            full = os.path.join(dirpath, name)
            snapshot[os.path.relpath(full, root)] = read_bytes(full)
    return snapshot
