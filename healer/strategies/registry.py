"""
Strategy Registry
=================
Explicit mapping of category key → strategy implementation.

Order of registration is the fallback order of the plan when two
strategies have equal priority.
"""
import logging
from typing import Iterable, List, Optional

from healer.strategies.base import FixStrategy
from healer.strategies.import_fixers import (
    ImportDeclarationSyntaxStrategy,
    DuplicateImportMergerStrategy,
    UnusedImportCleanerStrategy,
    MissingImportAdderStrategy,
)
from healer.strategies.type_fixers import (
    EventListenerCastStrategy,
    ImplicitAnyAnnotatorStrategy,
)

logger = logging.getLogger(__name__)


class StrategyRegistry:
    def __init__(self) -> None:
        self._strategies: List[FixStrategy] = []

    def register(self, strategy: FixStrategy) -> FixStrategy:
        if not strategy.name:
            raise ValueError(f"{type(strategy).__name__} has no name")
        if strategy.name in self.names():
            raise ValueError(f"Strategy already registered: {strategy.name}")
        self._strategies.append(strategy)
        return strategy

    def strategies(self) -> List[FixStrategy]:
        return list(self._strategies)

    def names(self) -> List[str]:
        return [s.name for s in self._strategies]

    def get(self, name: str) -> Optional[FixStrategy]:
        return next((s for s in self._strategies if s.name == name), None)

    def for_category(self, key: str) -> List[FixStrategy]:
        return [s for s in self._strategies if key in s.target_categories]

    def handles(self, key: str) -> bool:
        return bool(self.for_category(key))

    def __len__(self) -> int:
        return len(self._strategies)


def default_registry(disabled: Iterable[str] = ()) -> StrategyRegistry:
    """Registry with every built-in strategy except the disabled names."""
    skip = set(disabled)
    registry = StrategyRegistry()
    for strategy in (
        ImportDeclarationSyntaxStrategy(),
        DuplicateImportMergerStrategy(),
        MissingImportAdderStrategy(),
        UnusedImportCleanerStrategy(),
        EventListenerCastStrategy(),
        ImplicitAnyAnnotatorStrategy(),
    ):
        if strategy.name in skip:
            logger.info("Strategy disabled by configuration: %s", strategy.name)
            continue
        registry.register(strategy)
    return registry
