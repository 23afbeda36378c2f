"""
Integration Tests — Git Agent
=============================
Real git in a throwaway repository: checkpoint, commit and byte-identical
rollback, plus one end-to-end orchestration with a scripted type checker.
"""
from unittest.mock import MagicMock

import pytest

from healer.agents.git_agent import GitAgent
from healer.agents.orchestrator import Orchestrator
from healer.core.errors import VersionControlError
from healer.strategies.registry import default_registry

from conftest import FakeTypeChecker, git, requires_git, tree_snapshot, tsc_line, unused_output

pytestmark = requires_git

EXCLUDED = [".error-fix-backups", "logs", "error-resolution-report.json"]


@pytest.fixture
def agent(git_repo):
    return GitAgent(str(git_repo), excluded_paths=EXCLUDED)


def test_ensure_available(agent):
    agent.ensure_available()


def test_ensure_available_outside_repo(tmp_path_factory):
    plain = tmp_path_factory.mktemp("plain")
    with pytest.raises(VersionControlError):
        GitAgent(str(plain)).ensure_available()


def test_clean_checkpoint_records_head(agent, git_repo):
    head = git(git_repo, "rev-parse", "HEAD").strip()
    checkpoint = agent.checkpoint("before x")
    assert checkpoint.committed is False
    assert checkpoint.sha == head


def test_dirty_checkpoint_commits(agent, git_repo):
    (git_repo / "src" / "b.ts").write_text("export const b = 2;\n", encoding="utf-8")
    checkpoint = agent.checkpoint("before x")
    assert checkpoint.committed is True
    assert git(git_repo, "log", "-1", "--format=%s").strip() == "checkpoint: before x"
    assert git(git_repo, "status", "--porcelain").strip() == ""


def test_revert_is_byte_identical(agent, git_repo):
    (git_repo / "src" / "a.ts").write_bytes(b"export const a = 1;\r\n// crlf kept\r\n")
    checkpoint = agent.checkpoint("before x")
    before = tree_snapshot(git_repo)

    (git_repo / "src" / "a.ts").write_text("broken(", encoding="utf-8")
    (git_repo / "src" / "new.ts").write_text("export {};\n", encoding="utf-8")
    (git_repo / ".error-fix-backups").mkdir()
    (git_repo / ".error-fix-backups" / "a.ts").write_text("saved", encoding="utf-8")

    agent.revert(checkpoint)

    after = tree_snapshot(git_repo)
    backup_key = [k for k in after if k.startswith(".error-fix-backups")]
    assert backup_key, "backup directory must survive a rollback"
    for key in backup_key:
        after.pop(key)
    assert after == before


def test_commit(agent, git_repo):
    (git_repo / "src" / "a.ts").write_text("export const a = 2;\n", encoding="utf-8")
    sha = agent.commit("fix: unused-imports via unused-import-cleaner")
    assert sha == git(git_repo, "rev-parse", "HEAD").strip()
    assert agent.commit_count == 1


def test_commit_nothing_changed(agent):
    assert agent.commit("fix: nothing") == ""
    assert agent.commit_count == 0


def test_excluded_paths_never_staged(agent, git_repo):
    (git_repo / "logs").mkdir()
    (git_repo / "logs" / "run.log").write_text("x", encoding="utf-8")
    (git_repo / "error-resolution-report.json").write_text("{}", encoding="utf-8")
    assert agent.commit("fix: only excluded files") == ""
    tracked = git(git_repo, "ls-files").split()
    assert tracked == ["src/a.ts"]


def test_checkpoint_in_empty_repository(tmp_path):
    repo = tmp_path / "empty"
    repo.mkdir()
    git(repo, "init", "-q")
    git(repo, "config", "user.email", "healer@example.com")
    git(repo, "config", "user.name", "Healer Tests")
    git(repo, "config", "commit.gpgsign", "false")
    checkpoint = GitAgent(str(repo)).checkpoint("first")
    assert checkpoint.committed is True
    assert checkpoint.sha


def test_revert_without_sha(agent):
    checkpoint = agent.checkpoint("x").model_copy(update={"sha": ""})
    with pytest.raises(VersionControlError):
        agent.revert(checkpoint)


# ===========================================================================
# End to end
# ===========================================================================
SOURCE = "import { a, b } from './x';\nexport const y = a;\n"
UNUSED_B = tsc_line("src/app.ts", 1, "TS6133", "'b' is declared but its value is never read.", column=13)


@pytest.fixture
def project(git_repo):
    (git_repo / "src" / "app.ts").write_text(SOURCE, encoding="utf-8")
    git(git_repo, "add", "-A")
    git(git_repo, "commit", "-q", "-m", "add app")
    return git_repo


def run_orchestrator(make_settings, project, outputs):
    settings = make_settings(project_root=str(project), create_backup=True, write_report=True)
    orchestrator = Orchestrator(
        settings,
        type_checker=FakeTypeChecker(outputs),
        registry=default_registry(),
        sleep=MagicMock(),
    )
    return orchestrator.run()


def test_end_to_end_commit(make_settings, project):
    report = run_orchestrator(make_settings, project, [UNUSED_B, ""])

    assert report.status == "success"
    assert (project / "src" / "app.ts").read_text(encoding="utf-8") == (
        "import { a } from './x';\nexport const y = a;\n"
    )
    subjects = git(project, "log", "--format=%s").splitlines()
    assert subjects[0] == "fix: unused-imports via unused-import-cleaner"
    assert "error-resolution-report.json" not in git(project, "ls-files")
    assert (project / "error-resolution-report.json").exists()


def test_end_to_end_rollback(make_settings, project):
    before = (project / "src" / "app.ts").read_bytes()
    head = git(project, "rev-parse", "HEAD").strip()

    report = run_orchestrator(make_settings, project, [UNUSED_B, unused_output(5, "src/app.ts")])

    result = [r for r in report.results if not r.skipped][0]
    assert result.reverted is True
    assert report.final_total == 1
    assert (project / "src" / "app.ts").read_bytes() == before
    assert git(project, "rev-parse", "HEAD").strip() == head
    assert (project / ".error-fix-backups").is_dir()
