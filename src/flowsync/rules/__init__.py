"""Ordered chain of conflict classification rules.

The first rule that matches a block decides its category and
resolution. A block no rule matches needs manual resolution.
"""

from __future__ import annotations

from collections.abc import Sequence

from flowsync.core.config import ResolveConfig
from flowsync.rules.additions import CombineAdditions
from flowsync.rules.base import MANUAL, Classification, Rule
from flowsync.rules.containment import OursIncludesTheirs, TheirsIncludesOurs
from flowsync.rules.imports import MergeImports
from flowsync.rules.one_sided import OursWhenTheirsEmpty, TheirsWhenOursEmpty
from flowsync.rules.version import TheirsForVersionBump

# Order is significant
DEFAULT_RULES: tuple[type[Rule], ...] = (
    TheirsWhenOursEmpty,
    OursWhenTheirsEmpty,
    OursIncludesTheirs,
    TheirsIncludesOurs,
    MergeImports,
    CombineAdditions,
    TheirsForVersionBump,
)


class Classifier:
    """Walks a rule chain and returns the first match."""

    def __init__(
        self,
        config: ResolveConfig | None = None,
        rules: Sequence[type[Rule]] = DEFAULT_RULES,
    ):
        self.config = config or ResolveConfig()
        self.rules = [rule(self.config) for rule in rules]

    def classify(self, ours: str, theirs: str) -> Classification:
        for rule in self.rules:
            classification = rule.classify(ours, theirs)
            if classification is not None:
                return classification
        return Classification(MANUAL)


__all__ = [
    "DEFAULT_RULES",
    "MANUAL",
    "Classification",
    "Classifier",
    "Rule",
]
