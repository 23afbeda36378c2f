"""
Classification
==============
Maps Diagnostics to pattern categories and ranks the categories.

Categories (first predicate wins):
    syntax-import-declaration  — punctuation / declaration syntax codes
    duplicate-imports          — "Duplicate identifier" messages
    unused-imports             — unused-declaration codes
    missing-imports            — unresolved name / module codes
    type-compatibility         — assignability / overload codes
    event-handler-types        — messages mentioning DOM event types
    other-<code>               — everything else

Classification Strategy:
    1. EXPLICIT CODE TABLES FIRST
    2. MESSAGE SUBSTRINGS SECOND
    3. NEVER dynamic inference: a total, deterministic function

Priority:
    base weight (fixed table) + 0.1 per distinct affected file, capped at 2.0
"""
from typing import Iterable, Sequence

from healer.core.constants import (
    SYNTAX_IMPORT_DECLARATION,
    DUPLICATE_IMPORTS,
    UNUSED_IMPORTS,
    MISSING_IMPORTS,
    TYPE_COMPATIBILITY,
    EVENT_HANDLER_TYPES,
    OTHER_PREFIX,
    BASE_PRIORITY,
    DEFAULT_BASE_PRIORITY,
    FILE_BONUS_PER_FILE,
    FILE_BONUS_CAP,
)
from healer.models.diagnostic import Diagnostic
from healer.models.pattern_category import PatternCategory


# ---------------------------------------------------------------------------
# 1. Code Tables
# ---------------------------------------------------------------------------
SYNTAX_CODES = frozenset({"TS1005", "TS1128"})
UNUSED_CODES = frozenset({"TS6133", "TS6192", "TS6196"})
MISSING_CODES = frozenset({"TS2304", "TS2307", "TS2552"})
TYPE_COMPAT_CODES = frozenset({"TS2322", "TS2339", "TS2345", "TS2769"})


# ---------------------------------------------------------------------------
# 2. Message Substrings
# ---------------------------------------------------------------------------
DUPLICATE_MARKER = "Duplicate identifier"
EVENT_TYPES = ("MouseEvent", "KeyboardEvent", "FocusEvent", "TouchEvent", "PointerEvent")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def classify_diagnostic(diagnostic: Diagnostic) -> str:
    """
    Return the pattern category key for one Diagnostic.

    Parameters
    ----------
    diagnostic : Diagnostic
        A parsed diagnostic.

    Returns
    -------
    str
        One of the fixed category keys, or ``other-<code>``.
    """
    code = diagnostic.code.upper()
    message = diagnostic.message

    if code in SYNTAX_CODES:
        return SYNTAX_IMPORT_DECLARATION
    if DUPLICATE_MARKER in message:
        return DUPLICATE_IMPORTS
    if code in UNUSED_CODES:
        return UNUSED_IMPORTS
    if code in MISSING_CODES:
        return MISSING_IMPORTS
    if code in TYPE_COMPAT_CODES:
        return TYPE_COMPATIBILITY
    if any(event in message for event in EVENT_TYPES):
        return EVENT_HANDLER_TYPES
    return f"{OTHER_PREFIX}{code}"


def classify(diagnostics: Iterable[Diagnostic]) -> dict[str, list[Diagnostic]]:
    """
    Group Diagnostics by category key.

    Keys appear in first-seen order; members keep output order.
    Every Diagnostic lands in exactly one category.
    """
    groups: dict[str, list[Diagnostic]] = {}
    for diagnostic in diagnostics:
        groups.setdefault(classify_diagnostic(diagnostic), []).append(diagnostic)
    return groups


def base_priority(key: str) -> float:
    """Return the fixed base weight for a category key."""
    return BASE_PRIORITY.get(key, DEFAULT_BASE_PRIORITY)


def category_priority(key: str, members: Sequence[Diagnostic]) -> float:
    """Base weight plus a capped bonus for the number of distinct files."""
    file_count = len({d.file for d in members})
    bonus = min(file_count * FILE_BONUS_PER_FILE, FILE_BONUS_CAP)
    return round(base_priority(key) + bonus, 2)


def build_categories(diagnostics: Iterable[Diagnostic]) -> list[PatternCategory]:
    """
    Classify and rank.

    Returns
    -------
    list[PatternCategory]
        Sorted by priority descending, ties broken by key.
    """
    categories = [
        PatternCategory(
            key=key,
            members=tuple(members),
            priority=category_priority(key, members),
        )
        for key, members in classify(diagnostics).items()
    ]
    return sorted(categories, key=lambda c: (-c.priority, c.key))


def count_in_categories(diagnostics: Iterable[Diagnostic], keys: Iterable[str]) -> int:
    """Number of diagnostics falling into any of the given category keys."""
    wanted = set(keys)
    return sum(1 for d in diagnostics if classify_diagnostic(d) in wanted)
