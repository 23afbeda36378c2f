"""
Import Statements
=================
Regex-level view of ES import declarations, shared by the import strategies.

Recognised:
    import Default from 'm';
    import { a, b as c } from 'm';
    import Default, { a } from 'm';
    import type { T } from 'm';
    (named lists may span several lines)

Left alone:
    import * as ns from 'm';
    import 'side-effect';
    import {
      a, // comments inside the braces
    } from 'm';
"""
import re
from dataclasses import dataclass
from typing import Iterator, List, Optional

IMPORT_RE = re.compile(
    r"^\ufeff?(?P<indent>[ \t]*)import[ \t]+(?P<type>type[ \t]+)?"
    r"(?:(?P<default>[A-Za-z_$][\w$]*)[ \t]*(?:,[ \t]*)?)?"
    r"(?:\{(?P<named>[^}]*)\})?"
    r"\s*from\s*(?P<quote>['\"])(?P<module>[^'\"\n]+)(?P=quote)[ \t]*;?[ \t]*$",
    re.MULTILINE,
)


@dataclass
class ImportStatement:
    start: int
    end: int
    indent: str
    type_only: bool
    default: Optional[str]
    named: Optional[List[str]]   # None when the statement has no braces
    raw_named: Optional[str]
    module: str
    quote: str
    text: str
    start_line: int = 1

    @property
    def end_line(self) -> int:
        return self.start_line + self.text.count("\n")

    @property
    def local_names(self) -> List[str]:
        names = [self.default] if self.default else []
        names.extend(local_name(s) for s in self.named or [])
        return names

    def spans_line(self, line: int) -> bool:
        return self.start_line <= line <= self.end_line

    def render(self) -> str:
        return render_import(
            self.default, self.named or [], self.module,
            quote=self.quote, type_only=self.type_only, indent=self.indent,
        )


def split_specifiers(raw: str) -> List[str]:
    """Split a named-import list, collapsing whitespace and dropping empties."""
    return [" ".join(part.split()) for part in raw.split(",") if part.strip()]


def local_name(specifier: str) -> str:
    """`a as b` → b, `type T` → T, `a` → a."""
    parts = specifier.split()
    if len(parts) >= 3 and parts[-2] == "as":
        return parts[-1]
    return parts[-1] if parts else ""


def render_import(
    default: Optional[str],
    named: List[str],
    module: str,
    quote: str = "'",
    type_only: bool = False,
    indent: str = "",
) -> str:
    clause = []
    if default:
        clause.append(default)
    if named:
        clause.append("{ " + ", ".join(named) + " }")
    type_kw = "type " if type_only else ""
    return f"{indent}import {type_kw}{', '.join(clause)} from {quote}{module}{quote};"


def has_comment(raw: Optional[str]) -> bool:
    return raw is not None and ("//" in raw or "/*" in raw)


def iter_imports(content: str) -> Iterator[ImportStatement]:
    """Yield every recognised import statement in source order."""
    for m in IMPORT_RE.finditer(content):
        if m.group("default") is None and m.group("named") is None:
            continue
        raw_named = m.group("named")
        if has_comment(raw_named):
            continue
        # a leading BOM stays outside the statement span
        start = m.start("indent")
        yield ImportStatement(
            start=start,
            end=m.end(),
            indent=m.group("indent"),
            type_only=bool(m.group("type")),
            default=m.group("default"),
            named=split_specifiers(raw_named) if raw_named is not None else None,
            raw_named=raw_named,
            module=m.group("module"),
            quote=m.group("quote"),
            text=content[start:m.end()],
            start_line=content.count("\n", 0, start) + 1,
        )


def removal_span(content: str, stmt: ImportStatement) -> tuple[int, int]:
    """Span covering the statement and its trailing newline."""
    end = stmt.end
    if content.startswith("\r\n", end):
        end += 2
    elif content.startswith("\n", end):
        end += 1
    return stmt.start, end


def apply_edits(content: str, edits: List[tuple[int, int, str]]) -> str:
    """Apply non-overlapping (start, end, replacement) edits."""
    for start, end, replacement in sorted(edits, key=lambda e: e[0], reverse=True):
        content = content[:start] + replacement + content[end:]
    return content
