"""
Import Fixers
=============
Text rewrites for the four import-related pattern categories.

    ImportDeclarationSyntaxStrategy → syntax-import-declaration
    DuplicateImportMergerStrategy   → duplicate-imports
    UnusedImportCleanerStrategy     → unused-imports
    MissingImportAdderStrategy      → missing-imports

All four work on the statements found by ``iter_imports`` and leave
namespace and side-effect imports untouched.
"""
import re
import logging
from typing import Dict, List, Optional, Sequence, Tuple

from healer.core.constants import (
    SYNTAX_IMPORT_DECLARATION,
    DUPLICATE_IMPORTS,
    UNUSED_IMPORTS,
    MISSING_IMPORTS,
)
from healer.models.diagnostic import Diagnostic
from healer.strategies.base import FixStrategy, StrategyOutcome, unchanged
from healer.strategies.import_statements import (
    ImportStatement,
    apply_edits,
    iter_imports,
    local_name,
    removal_span,
    render_import,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# syntax-import-declaration
# ---------------------------------------------------------------------------
_EMPTY_SPECIFIER = re.compile(r"^\s*,|,\s*,")
_SINGLE_LINE_NO_SEMI = re.compile(
    r"^(?P<stmt>\ufeff?[ \t]*import\b[^;\n]*?(?P<q>['\"])[^'\"\n]+(?P=q))[ \t]*$",
    re.MULTILINE,
)
_CLOSING_LINE_NO_SEMI = re.compile(
    r"^(?P<stmt>[ \t]*\}[ \t]*from[ \t]*(?P<q>['\"])[^'\"\n]+(?P=q))[ \t]*$",
    re.MULTILINE,
)


def _template_spans(content: str) -> List[Tuple[int, int]]:
    """(start, end) of every backtick template literal, escapes honoured."""
    spans = []
    start = None
    i = 0
    while i < len(content):
        ch = content[i]
        if ch == "\\":
            i += 2
            continue
        if ch == "`":
            if start is None:
                start = i
            else:
                spans.append((start, i))
                start = None
        i += 1
    if start is not None:
        spans.append((start, len(content)))
    return spans


def _terminate(pattern: re.Pattern, content: str) -> Tuple[str, int]:
    """Append ';' to every match outside a template literal."""
    spans = _template_spans(content)
    count = 0

    def replace(m: re.Match) -> str:
        nonlocal count
        if any(start < m.start() < end for start, end in spans):
            return m.group(0)
        count += 1
        return m.group("stmt") + ";"

    return pattern.sub(replace, content), count


class ImportDeclarationSyntaxStrategy(FixStrategy):
    name = "import-declaration-syntax"
    target_categories = (SYNTAX_IMPORT_DECLARATION,)
    description = "Drop empty import specifiers and terminate import statements with ';'"

    def apply(self, content: str, diagnostics: Sequence[Diagnostic] = ()) -> StrategyOutcome:
        fixes = 0
        edits = []
        for stmt in iter_imports(content):
            if stmt.raw_named is not None and _EMPTY_SPECIFIER.search(stmt.raw_named):
                edits.append((stmt.start, stmt.end, stmt.render()))
        if edits:
            content = apply_edits(content, edits)
            fixes += len(edits)

        for pattern in (_SINGLE_LINE_NO_SEMI, _CLOSING_LINE_NO_SEMI):
            content, n = _terminate(pattern, content)
            fixes += n

        return StrategyOutcome(content, fixes)


# ---------------------------------------------------------------------------
# duplicate-imports
# ---------------------------------------------------------------------------
def _dedupe(specifiers: List[str]) -> Tuple[List[str], int]:
    seen = set()
    kept = []
    for spec in specifiers:
        if spec in seen:
            continue
        seen.add(spec)
        kept.append(spec)
    return kept, len(specifiers) - len(kept)


class DuplicateImportMergerStrategy(FixStrategy):
    name = "duplicate-import-merger"
    target_categories = (DUPLICATE_IMPORTS,)
    description = "Merge repeated imports of the same module into one statement"

    def apply(self, content: str, diagnostics: Sequence[Diagnostic] = ()) -> StrategyOutcome:
        groups: Dict[Tuple[str, bool], List[ImportStatement]] = {}
        for stmt in iter_imports(content):
            groups.setdefault((stmt.module, stmt.type_only), []).append(stmt)

        edits = []
        fixes = 0
        for (module, _), stmts in groups.items():
            defaults = {s.default for s in stmts if s.default}
            if len(defaults) > 1:
                logger.debug("Not merging imports of %s: conflicting defaults %s", module, defaults)
                continue

            named: List[str] = []
            for s in stmts:
                named.extend(s.named or [])
            merged, dropped = _dedupe(named)
            if len(stmts) == 1 and not dropped:
                continue

            first = stmts[0]
            default = next(iter(defaults), None)
            edits.append((first.start, first.end, render_import(
                default, merged, module,
                quote=first.quote, type_only=first.type_only, indent=first.indent,
            )))
            for extra in stmts[1:]:
                start, end = removal_span(content, extra)
                edits.append((start, end, ""))
            fixes += (len(stmts) - 1) + dropped

        if not edits:
            return unchanged(content)
        return StrategyOutcome(apply_edits(content, edits), fixes)


# ---------------------------------------------------------------------------
# unused-imports
# ---------------------------------------------------------------------------
_UNUSED_NAME = re.compile(r"'([^']+)' is declared but (?:its value is )?never (?:read|used)")
_ALL_UNUSED_CODE = "TS6192"


class UnusedImportCleanerStrategy(FixStrategy):
    name = "unused-import-cleaner"
    target_categories = (UNUSED_IMPORTS,)
    description = "Remove import specifiers reported as never read"

    def apply(self, content: str, diagnostics: Sequence[Diagnostic] = ()) -> StrategyOutcome:
        unused: List[Tuple[int, str]] = []
        all_unused_lines = set()
        for d in diagnostics:
            if d.code.upper() == _ALL_UNUSED_CODE:
                all_unused_lines.add(d.line)
                continue
            m = _UNUSED_NAME.search(d.message)
            if m:
                unused.append((d.line, m.group(1)))

        if not unused and not all_unused_lines:
            return unchanged(content)

        edits = []
        fixes = 0
        for stmt in iter_imports(content):
            if any(stmt.spans_line(line) for line in all_unused_lines):
                edits.append((*removal_span(content, stmt), ""))
                fixes += len(stmt.local_names)
                continue

            names = {name for line, name in unused if stmt.spans_line(line)}
            if not names:
                continue

            default = stmt.default if stmt.default not in names else None
            named = [s for s in stmt.named or [] if local_name(s) not in names]
            removed = len(stmt.local_names) - len(named) - (1 if default else 0)
            if removed == 0:
                continue

            fixes += removed
            if default is None and not named:
                edits.append((*removal_span(content, stmt), ""))
            else:
                edits.append((stmt.start, stmt.end, render_import(
                    default, named, stmt.module,
                    quote=stmt.quote, type_only=stmt.type_only, indent=stmt.indent,
                )))

        if not edits:
            return unchanged(content)
        return StrategyOutcome(apply_edits(content, edits), fixes)


# ---------------------------------------------------------------------------
# missing-imports
# ---------------------------------------------------------------------------
# name → (module, is_default)
KNOWN_IMPORTS: Dict[str, Tuple[str, bool]] = {
    "React": ("react", True),
    **{name: ("react", False) for name in (
        "useState", "useEffect", "useCallback", "useMemo", "useRef",
        "useContext", "useReducer", "useLayoutEffect", "useId",
        "createContext", "forwardRef", "memo", "lazy", "Suspense", "Fragment",
        "FC", "ReactNode",
    )},
    **{name: ("react-router-dom", False) for name in (
        "Link", "NavLink", "Navigate", "Outlet", "Route", "Routes",
        "BrowserRouter", "useNavigate", "useParams", "useLocation",
        "useSearchParams",
    )},
}

_MISSING_NAME = re.compile(r"Cannot find name '([^']+)'")
_DIRECTIVE_LINE = re.compile(r"""^(?:#!.*|\s*['"]use [a-z]+['"];?\s*)$""")


def _insert_offset(content: str, statements: List[ImportStatement]) -> int:
    """After the last import, else after a shebang / 'use client' prologue."""
    if statements:
        return removal_span(content, statements[-1])[1]
    offset = 0
    for line in content.splitlines(keepends=True):
        if not _DIRECTIVE_LINE.match(line.rstrip("\r\n")):
            break
        offset += len(line)
    return offset


class MissingImportAdderStrategy(FixStrategy):
    name = "missing-import-adder"
    target_categories = (MISSING_IMPORTS,)
    description = "Add imports for well-known React and react-router-dom names"

    def __init__(self, known_imports: Optional[Dict[str, Tuple[str, bool]]] = None) -> None:
        self.known_imports = dict(known_imports or KNOWN_IMPORTS)

    def apply(self, content: str, diagnostics: Sequence[Diagnostic] = ()) -> StrategyOutcome:
        statements = list(iter_imports(content))
        already = {n for s in statements for n in s.local_names}

        wanted: Dict[str, Dict[str, object]] = {}
        for d in diagnostics:
            m = _MISSING_NAME.search(d.message)
            if not m:
                continue
            name = m.group(1)
            if name in already or name not in self.known_imports:
                continue
            module, is_default = self.known_imports[name]
            entry = wanted.setdefault(module, {"default": None, "named": []})
            if is_default:
                entry["default"] = name
            elif name not in entry["named"]:
                entry["named"].append(name)

        if not wanted:
            return unchanged(content)

        fixes = 0
        edits = []
        new_lines = []
        for module, entry in wanted.items():
            default = entry["default"]
            named = list(entry["named"])
            target = next(
                (s for s in statements if s.module == module and not s.type_only),
                None,
            )
            if target is not None and (default is None or target.default in (None, default)):
                edits.append((target.start, target.end, render_import(
                    target.default or default, (target.named or []) + named, module,
                    quote=target.quote, indent=target.indent,
                )))
            else:
                quote = statements[0].quote if statements else "'"
                new_lines.append(render_import(default, named, module, quote=quote))
            fixes += len(named) + (1 if default else 0)

        content = apply_edits(content, edits)
        if new_lines:
            offset = _insert_offset(content, list(iter_imports(content)))
            block = "\n".join(new_lines) + "\n"
            if offset > 0 and not content[:offset].endswith("\n"):
                block = "\n" + block
            content = content[:offset] + block + content[offset:]
        return StrategyOutcome(content, fixes)
