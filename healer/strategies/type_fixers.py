"""
Type Fixers
===========
EventListenerCastStrategy     → event-handler-types
ImplicitAnyAnnotatorStrategy  → other-TS7006, other-TS7019
"""
import re
from typing import Sequence

from healer.core.constants import EVENT_HANDLER_TYPES, OTHER_PREFIX
from healer.models.diagnostic import Diagnostic
from healer.strategies.base import FixStrategy, StrategyOutcome, unchanged

IMPLICIT_ANY_CATEGORY = f"{OTHER_PREFIX}TS7006"
IMPLICIT_ANY_REST_CATEGORY = f"{OTHER_PREFIX}TS7019"


# ---------------------------------------------------------------------------
# event-handler-types
# ---------------------------------------------------------------------------
_LISTENER_CALL = re.compile(
    r"(?P<head>\.(?:add|remove)EventListener\(\s*(?P<q>['\"])[\w:-]+(?P=q)\s*,\s*)"
    r"(?P<handler>[A-Za-z_$][\w$]*(?:\.[A-Za-z_$][\w$]*)*)"
    r"(?P<tail>\s*[,)])"
)


def _line_at(content: str, pos: int) -> int:
    return content.count("\n", 0, pos) + 1


class EventListenerCastStrategy(FixStrategy):
    """
    Cast named handlers passed to add/removeEventListener.

        el.addEventListener('keydown', handleKey)
        → el.addEventListener('keydown', handleKey as EventListener)

    Only calls whose first line or handler line carries a reported
    diagnostic are rewritten. Inline arrow functions and bound methods are
    left alone; a handler that already carries a cast no longer matches.
    """

    name = "event-listener-cast"
    target_categories = (EVENT_HANDLER_TYPES,)
    description = "Cast add/removeEventListener handlers to EventListener"

    def apply(self, content: str, diagnostics: Sequence[Diagnostic] = ()) -> StrategyOutcome:
        reported = {d.line for d in diagnostics}
        if not reported:
            return unchanged(content)
        fixes = 0

        def cast(m: re.Match) -> str:
            nonlocal fixes
            lines = {_line_at(content, m.start()), _line_at(content, m.start("handler"))}
            if not lines & reported:
                return m.group(0)
            fixes += 1
            return f"{m.group('head')}{m.group('handler')} as EventListener{m.group('tail')}"

        fixed = _LISTENER_CALL.sub(cast, content)
        return StrategyOutcome(fixed, fixes)


# ---------------------------------------------------------------------------
# other-TS7006 / other-TS7019
# ---------------------------------------------------------------------------
_PARAMETER_NAME = re.compile(
    r"(?:Rest p|P)arameter '(?P<name>[^']+)' implicitly has an? '(?P<type>any(?:\[\])?)' type"
)
_SPREAD = "..."


class ImplicitAnyAnnotatorStrategy(FixStrategy):
    """
    Annotate parameters reported by TS7006 with ``: any`` and rest
    parameters reported by TS7019 with ``: any[]``.

    Uses the diagnostic column to find the parameter; a bare arrow
    parameter (``x => ...``) is wrapped as ``(x: any) => ...``. For rest
    parameters the column may point at the ``...`` or at the name.
    """

    name = "implicit-any-annotator"
    target_categories = (IMPLICIT_ANY_CATEGORY, IMPLICIT_ANY_REST_CATEGORY)
    description = "Annotate implicitly-any parameters with ': any' / ': any[]'"

    def apply(self, content: str, diagnostics: Sequence[Diagnostic] = ()) -> StrategyOutcome:
        lines = content.split("\n")
        fixes = 0

        # right-to-left so earlier columns on the same line stay valid
        ordered = sorted(diagnostics, key=lambda d: (d.line, d.column), reverse=True)
        for d in ordered:
            m = _PARAMETER_NAME.search(d.message)
            if not m or d.line > len(lines):
                continue
            name = m.group("name")
            annotation = m.group("type")
            line = lines[d.line - 1]
            start = d.column - 1
            if line.startswith(_SPREAD, start):
                start += len(_SPREAD)
            if line[start:start + len(name)] != name:
                continue

            end = start + len(name)
            rest = line[end:].lstrip()
            if rest.startswith((":", "?:")):
                continue

            if rest.startswith("=>"):
                lines[d.line - 1] = f"{line[:start]}({name}: {annotation}){line[end:]}"
            else:
                lines[d.line - 1] = f"{line[:end]}: {annotation}{line[end:]}"
            fixes += 1

        if not fixes:
            return unchanged(content)
        return StrategyOutcome("\n".join(lines), fixes)
