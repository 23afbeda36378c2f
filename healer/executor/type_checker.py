"""
Type Checker
============
Runs the project's TypeScript checker as a subprocess and returns its raw
combined output.

BOUNDARY RULES:
    - TypeChecker ONLY observes.
    - TypeChecker NEVER parses diagnostics; that is the Parser's job.
    - TypeChecker NEVER touches git or source files.

Exit Code Contract:
    - exit 0           → neutral output, zero diagnostics
    - non-zero exit    → combined stdout + stderr holds the diagnostics
      (type checkers signal "errors found" this way; it is not a failure)

Retry Policy:
    Timeouts and launch failures are retried up to ``retries`` times.
    Attempt N (0-based) gets ``timeout + N * timeout_step`` seconds and a
    ``retry_delay`` pause precedes every retry. When attempts run out,
    TypeCheckTimeout / TypeCheckerUnavailable is raised for the caller to
    fall back to the last known count.
"""
import subprocess
import time
import logging
from dataclasses import dataclass, field
from typing import Callable, Optional, Sequence

from healer.core.config import (
    TYPE_CHECK_TIMEOUT,
    TYPE_CHECK_TIMEOUT_STEP,
    TYPE_CHECK_RETRIES,
    TYPE_CHECK_RETRY_DELAY,
)
from healer.core.errors import TypeCheckTimeout, TypeCheckerUnavailable

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Raw Output (returned to DiagnosticsService / Parser)
# ---------------------------------------------------------------------------
@dataclass
class RawOutput:
    """
    Structured output from a single type-checker invocation.

    Fields
    ------
    exit_code : int
        Process exit code (0 = no diagnostics).
    output : str
        Combined stdout + stderr.
    attempts : int
        Number of attempts it took (1 = first try).
    duration_seconds : float
        Wall clock duration of the successful attempt.
    command : list[str]
        The argument vector that was executed.
    """
    exit_code: int = -1
    output: str = ""
    attempts: int = 1
    duration_seconds: float = 0.0
    command: list[str] = field(default_factory=list)

    @property
    def log_excerpt(self) -> str:
        return create_log_excerpt(self.output)


# ---------------------------------------------------------------------------
# Log Excerpt Helper
# ---------------------------------------------------------------------------
_EXCERPT_HEAD_LINES = 15
_EXCERPT_TAIL_LINES = 15


def create_log_excerpt(full_log: str,
                       head: int = _EXCERPT_HEAD_LINES,
                       tail: int = _EXCERPT_TAIL_LINES) -> str:
    """
    Create an abbreviated log showing the first and last N lines.

    If the log is short enough, returns it as-is.
    """
    lines = full_log.splitlines()
    total = len(lines)

    if total <= head + tail:
        return full_log

    omitted = total - head - tail
    return "\n".join(
        lines[:head]
        + [f"... ({omitted} lines omitted) ..."]
        + lines[-tail:]
    )


# ---------------------------------------------------------------------------
# Type Checker
# ---------------------------------------------------------------------------
class TypeChecker:
    """
    Subprocess wrapper around the type-check command.

    Parameters
    ----------
    command : Sequence[str]
        Argument vector (no shell).
    cwd : str
        Project root to run in.
    timeout : float
        First-attempt timeout in seconds.
    timeout_step : float
        Seconds added to the timeout on every retry.
    retries : int
        Maximum number of attempts.
    retry_delay : float
        Pause before each retry.
    sleep : callable
        Injected for tests.
    """

    def __init__(
        self,
        command: Sequence[str],
        cwd: str,
        timeout: float = TYPE_CHECK_TIMEOUT,
        timeout_step: float = TYPE_CHECK_TIMEOUT_STEP,
        retries: int = TYPE_CHECK_RETRIES,
        retry_delay: float = TYPE_CHECK_RETRY_DELAY,
        sleep: Optional[Callable[[float], None]] = None,
    ) -> None:
        self.command = list(command)
        self.cwd = cwd
        self.timeout = timeout
        self.timeout_step = timeout_step
        self.retries = max(1, retries)
        self.retry_delay = retry_delay
        self._sleep = sleep or time.sleep

    def timeout_for_attempt(self, attempt: int) -> float:
        """Timeout for a 0-based attempt index (45s, 60s, 75s by default)."""
        return self.timeout + attempt * self.timeout_step

    def run(self) -> RawOutput:
        """
        Run the type checker, retrying on timeout or launch failure.

        Returns
        -------
        RawOutput
            Exit code and combined output of the first attempt that finished.

        Raises
        ------
        TypeCheckTimeout
            Every attempt timed out.
        TypeCheckerUnavailable
            The command could not be started on any attempt.
        """
        last_error: Optional[Exception] = None

        for attempt in range(self.retries):
            if attempt > 0:
                self._sleep(self.retry_delay)

            timeout = self.timeout_for_attempt(attempt)
            start = time.monotonic()
            try:
                proc = subprocess.run(
                    self.command,
                    cwd=self.cwd,
                    capture_output=True,
                    text=True,
                    timeout=timeout,
                )
            except subprocess.TimeoutExpired as e:
                last_error = e
                logger.warning(
                    "Type check attempt %d/%d timed out after %.0fs",
                    attempt + 1, self.retries, timeout,
                )
                continue
            except OSError as e:
                last_error = e
                logger.warning(
                    "Type check attempt %d/%d could not start %r: %s",
                    attempt + 1, self.retries, self.command[0] if self.command else "", e,
                )
                continue

            duration = round(time.monotonic() - start, 3)
            output = (proc.stdout or "") + (proc.stderr or "")
            logger.debug(
                "Type check finished | exit=%d | time=%.2fs | attempt=%d",
                proc.returncode, duration, attempt + 1,
            )
            return RawOutput(
                exit_code=proc.returncode,
                output=output,
                attempts=attempt + 1,
                duration_seconds=duration,
                command=list(self.command),
            )

        if isinstance(last_error, subprocess.TimeoutExpired):
            raise TypeCheckTimeout(
                f"Type check timed out after {self.retries} attempt(s)"
            ) from last_error
        raise TypeCheckerUnavailable(
            f"Type check command could not run: {last_error}"
        ) from last_error
