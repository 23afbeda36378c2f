"""
Diagnostic Parser
=================
Converts raw type-checker output into structured Diagnostic objects.

Pipeline:
    1. Strip ANSI colour codes and carriage returns
    2. Split output into lines
    3. Match each line against the known diagnostic shapes
    4. Normalize file paths (project-relative, forward slashes)
    5. Quarantine lines that mention an error code but fit no shape

Shapes:
    src/a.ts(12,5): error TS2304: Cannot find name 'x'.       (tsc default)
    src/a.ts:12:5 - error TS2304: Cannot find name 'x'.       (tsc --pretty)

Contract:
    - DETERMINISTIC: same output → same Diagnostics, always.
    - Best-effort linear scan, tolerant of interleaved build-tool noise.
    - Never raises: malformed lines are skipped, never fatal.
"""
import re
import logging
from dataclasses import dataclass, field

from pydantic import ValidationError

from healer.models.diagnostic import Diagnostic

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Line Patterns
# ---------------------------------------------------------------------------
_ANSI_ESCAPE = re.compile(r"\x1b\[[0-9;]*[A-Za-z]")

# file(line,col): error CODE: message
_PAREN_SHAPE = re.compile(
    r"^(?P<file>.+?)\((?P<line>\d+),(?P<column>\d+)\):\s+error\s+"
    r"(?P<code>[A-Za-z]*\d+):\s*(?P<message>.+)$"
)

# file:line:col - error CODE: message
_PRETTY_SHAPE = re.compile(
    r"^(?P<file>.+?):(?P<line>\d+):(?P<column>\d+)\s+-\s+error\s+"
    r"(?P<code>[A-Za-z]*\d+):\s*(?P<message>.+)$"
)

_SHAPES = (_PAREN_SHAPE, _PRETTY_SHAPE)

# Anything that looks like it wanted to be a diagnostic
_ERROR_CODE_HINT = re.compile(r"\berror\s+TS\d+\b")


# ---------------------------------------------------------------------------
# Path Normalization
# ---------------------------------------------------------------------------
def normalize_path(raw_path: str, project_root: str = "") -> str:
    """
    Convert an absolute or messy path to a clean project-relative path.

    Steps:
        1. Strip quotes and whitespace
        2. Replace backslashes with forward slashes
        3. Remove project root prefix if present
        4. Remove leading "./"

    Parameters
    ----------
    raw_path : str
        The raw file path extracted from an output line.
    project_root : str
        The project root directory to strip.

    Returns
    -------
    str
        Clean, project-relative path with forward slashes.
    """
    path = raw_path.strip().strip("'\"")
    path = path.replace("\\", "/")

    if project_root:
        root = project_root.replace("\\", "/").rstrip("/")
        if path.startswith(root + "/"):
            path = path[len(root):].lstrip("/")

    while path.startswith("./"):
        path = path[2:]
    return path


# ---------------------------------------------------------------------------
# Parse Result
# ---------------------------------------------------------------------------
@dataclass
class ParseResult:
    """Diagnostics plus the lines that looked like errors but fit no shape."""
    diagnostics: list[Diagnostic] = field(default_factory=list)
    quarantined: list[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.diagnostics)


def _clean_line(line: str) -> str:
    return _ANSI_ESCAPE.sub("", line).rstrip("\r").strip()


def _match_line(line: str, project_root: str) -> Diagnostic | None:
    for shape in _SHAPES:
        m = shape.match(line)
        if not m:
            continue
        try:
            return Diagnostic(
                file=normalize_path(m.group("file"), project_root),
                line=int(m.group("line")),
                column=int(m.group("column")),
                code=m.group("code").upper(),
                message=m.group("message").strip(),
                raw_line=line,
            )
        except ValidationError:
            # e.g. line 0: the shape matched but the values are invalid
            return None
    return None


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def parse_output(raw_output: str, project_root: str = "") -> ParseResult:
    """
    Parse type-checker output, keeping quarantined lines.

    Parameters
    ----------
    raw_output : str
        Combined stdout + stderr of the type checker.
    project_root : str
        Project root for path normalization.

    Returns
    -------
    ParseResult
        Diagnostics in output order plus quarantined lines. Never raises.
    """
    result = ParseResult()
    if not raw_output or not raw_output.strip():
        return result

    for raw_line in raw_output.splitlines():
        line = _clean_line(raw_line)
        if not line:
            continue

        diagnostic = _match_line(line, project_root)
        if diagnostic is not None:
            result.diagnostics.append(diagnostic)
        elif _ERROR_CODE_HINT.search(line):
            result.quarantined.append(line)

    if result.quarantined:
        logger.debug(
            "Quarantined %d line(s) that mention an error code but fit no shape",
            len(result.quarantined),
        )
    logger.debug(
        "Parsed %d diagnostic(s) from output (%d chars)",
        result.total, len(raw_output),
    )
    return result


def parse_diagnostics(raw_output: str, project_root: str = "") -> list[Diagnostic]:
    """Parse type-checker output into a list of Diagnostics."""
    return parse_output(raw_output, project_root).diagnostics
