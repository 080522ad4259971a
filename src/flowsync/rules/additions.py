"""Combine two small independent additions."""

from flowsync.rules.base import Rule


class CombineAdditions(Rule):
    """Both sides are short and show no sign of removing anything.

    Short means at most max_addition_lines lines once surrounding
    whitespace is stripped. Any deletion indicator in either text (by
    default "delete" or a bare "-") disqualifies the block.
    """

    category = "combined additions"

    def _short(self, text: str) -> bool:
        return len(text.strip().split("\n")) <= self.config.max_addition_lines

    def _deletes(self, text: str) -> bool:
        return any(mark in text for mark in self.config.deletion_indicators)

    def matches(self, ours: str, theirs: str) -> bool:
        return (
            self._short(ours) and self._short(theirs)
            and not self._deletes(ours) and not self._deletes(theirs)
        )

    def resolve(self, ours: str, theirs: str) -> str:
        return f"{ours}\n{theirs}"
