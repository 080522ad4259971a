"""Rule interface for conflict classification."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from flowsync.core.config import ResolveConfig

MANUAL = "manual resolution needed"


@dataclass(frozen=True)
class Classification:
    """Category of a conflict block and, if automatic, its resolution.

    resolution is None when the block needs a human. An empty string is
    a real resolution: the block is removed.
    """

    category: str
    resolution: str | None = None

    @property
    def is_manual(self) -> bool:
        return self.resolution is None


def is_blank(text: str) -> bool:
    return not text.strip()


def non_blank_lines(text: str) -> list[str]:
    return [line for line in text.split("\n") if line.strip()]


class Rule(ABC):
    """One step of the classification chain.

    Subclasses set `category` and implement matches() and resolve().
    Rules are only consulted in chain order, so a rule may assume every
    earlier rule did not match.
    """

    category: str = ""

    def __init__(self, config: ResolveConfig | None = None):
        self.config = config or ResolveConfig()

    @abstractmethod
    def matches(self, ours: str, theirs: str) -> bool:
        ...

    @abstractmethod
    def resolve(self, ours: str, theirs: str) -> str:
        ...

    def classify(self, ours: str, theirs: str) -> Classification | None:
        if not self.matches(ours, theirs):
            return None
        return Classification(self.category, self.resolve(ours, theirs))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.category!r})"
