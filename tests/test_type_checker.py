"""
Unit Tests — Type Checker
=========================
subprocess is mocked: exit code contract, retry with escalating
timeouts, and exhaustion errors.
"""
import subprocess
from unittest.mock import MagicMock, patch

import pytest

from healer.core.errors import TransientToolFailure, TypeCheckTimeout, TypeCheckerUnavailable
from healer.executor.type_checker import TypeChecker, create_log_excerpt

RUN = "healer.executor.type_checker.subprocess.run"


def completed(returncode=0, stdout="", stderr=""):
    return subprocess.CompletedProcess(args=["tsc"], returncode=returncode, stdout=stdout, stderr=stderr)


@pytest.fixture
def sleep():
    return MagicMock()


@pytest.fixture
def checker(sleep):
    return TypeChecker(["npx", "tsc", "--noEmit"], cwd="/work", sleep=sleep)


def test_clean_exit(checker):
    with patch(RUN, return_value=completed(0, "")) as mock_run:
        out = checker.run()
    assert out.exit_code == 0
    assert out.output == ""
    assert out.attempts == 1
    kwargs = mock_run.call_args.kwargs
    assert kwargs["cwd"] == "/work"
    assert kwargs["timeout"] == 45
    assert kwargs["capture_output"] is True


def test_nonzero_exit_combines_streams(checker):
    with patch(RUN, return_value=completed(2, "a.ts(1,1): error TS2304: x\n", "warn\n")):
        out = checker.run()
    assert out.exit_code == 2
    assert out.output == "a.ts(1,1): error TS2304: x\nwarn\n"


def test_retry_after_timeout(checker, sleep):
    with patch(RUN, side_effect=[
        subprocess.TimeoutExpired(cmd="tsc", timeout=45),
        completed(2, "out"),
    ]) as mock_run:
        out = checker.run()
    assert out.attempts == 2
    assert [c.kwargs["timeout"] for c in mock_run.call_args_list] == [45, 60]
    sleep.assert_called_once_with(5)


def test_escalating_timeouts():
    checker = TypeChecker(["tsc"], cwd=".", timeout=45, timeout_step=15)
    assert [checker.timeout_for_attempt(i) for i in range(3)] == [45, 60, 75]


def test_all_attempts_time_out(checker, sleep):
    with patch(RUN, side_effect=subprocess.TimeoutExpired(cmd="tsc", timeout=1)) as mock_run:
        with pytest.raises(TypeCheckTimeout):
            checker.run()
    assert mock_run.call_count == 3
    assert sleep.call_count == 2


def test_missing_tool(checker):
    with patch(RUN, side_effect=FileNotFoundError("npx")):
        with pytest.raises(TypeCheckerUnavailable) as exc_info:
            checker.run()
    assert isinstance(exc_info.value, TransientToolFailure)


def test_log_excerpt_short_log_unchanged():
    assert create_log_excerpt("a\nb") == "a\nb"


def test_log_excerpt_long_log():
    log = "\n".join(str(i) for i in range(100))
    excerpt = create_log_excerpt(log, head=2, tail=2)
    assert excerpt == "0\n1\n... (96 lines omitted) ...\n98\n99"
