"""
Command Resolver
================
Maps project marker files to the command that runs the TypeScript checker.

Resolution order (first match wins):
    1. Explicitly configured command
    2. package.json with a "type-check" script → npm run type-check
    3. tsconfig.json → npx tsc --noEmit --pretty false
    4. Fallback → the same tsc command (fails loudly if tsc is missing)

Resolver never executes commands; it only returns argument lists.
Deterministic: same project root → same command, always.
"""
import json
import os
import logging
from dataclasses import dataclass
from typing import Optional, Sequence

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedCommand:
    """
    Immutable container for the resolved type-check command.

    Fields
    ------
    argv : tuple[str, ...]
        Argument vector passed to subprocess (no shell).
    source : str
        Where the command came from: "configured", "npm-script",
        "tsconfig" or "fallback".
    """
    argv: tuple[str, ...]
    source: str

    @property
    def display(self) -> str:
        return " ".join(self.argv)


_TSC_COMMAND = ("npx", "tsc", "--noEmit", "--pretty", "false")
_NPM_SCRIPT_COMMAND = ("npm", "run", "--silent", "type-check")


def _has_type_check_script(project_root: str) -> bool:
    package_json = os.path.join(project_root, "package.json")
    if not os.path.isfile(package_json):
        return False
    try:
        with open(package_json, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logger.warning("Could not read package.json: %s", e)
        return False
    scripts = data.get("scripts") if isinstance(data, dict) else None
    return isinstance(scripts, dict) and "type-check" in scripts


def resolve_type_check_command(
    project_root: str,
    configured: Optional[Sequence[str]] = None,
) -> ResolvedCommand:
    """
    Look up the type-check command for a project.

    Parameters
    ----------
    project_root : str
        Root of the TypeScript project.
    configured : Sequence[str] | None
        Explicit command from settings; wins when non-empty.

    Returns
    -------
    ResolvedCommand
    """
    if configured:
        return ResolvedCommand(argv=tuple(configured), source="configured")
    if _has_type_check_script(project_root):
        return ResolvedCommand(argv=_NPM_SCRIPT_COMMAND, source="npm-script")
    if os.path.isfile(os.path.join(project_root, "tsconfig.json")):
        return ResolvedCommand(argv=_TSC_COMMAND, source="tsconfig")
    return ResolvedCommand(argv=_TSC_COMMAND, source="fallback")
