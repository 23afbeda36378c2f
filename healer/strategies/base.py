"""
Fix Strategy Base
=================
A strategy is a pure text transformation over ONE file's content.

Contract:
    - apply(content, diagnostics) → StrategyOutcome(content, fix_count)
    - diagnostics are the category members reported for that file
    - no I/O, no cross-file state, no git
    - should be idempotent; the checkpoint controller's rollback catches
      the cases where it is not
"""
from abc import ABC, abstractmethod
from typing import NamedTuple, Sequence

from healer.models.diagnostic import Diagnostic


class StrategyOutcome(NamedTuple):
    content: str
    fix_count: int


class FixStrategy(ABC):
    """Named rewrite associated with one or more pattern category keys."""

    name: str = ""
    target_categories: tuple[str, ...] = ()
    description: str = ""

    @abstractmethod
    def apply(self, content: str, diagnostics: Sequence[Diagnostic] = ()) -> StrategyOutcome:
        """Return the rewritten content and the number of rewrites applied."""

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name} -> {', '.join(self.target_categories)}>"


def unchanged(content: str) -> StrategyOutcome:
    return StrategyOutcome(content, 0)
