"""Merge two blocks of import statements."""

from flowsync.rules.base import Rule, non_blank_lines


class MergeImports(Rule):
    """Both sides hold import-like lines: keep the union of both.

    The result is every non-blank line of either side, de-duplicated and
    sorted.
    """

    category = "merged imports"

    def _has_import(self, text: str) -> bool:
        prefixes = tuple(self.config.import_prefixes)
        return bool(prefixes) and any(
            line.startswith(prefixes) for line in text.split("\n")
        )

    def matches(self, ours: str, theirs: str) -> bool:
        return self._has_import(ours) and self._has_import(theirs)

    def resolve(self, ours: str, theirs: str) -> str:
        lines = set(non_blank_lines(ours)) | set(non_blank_lines(theirs))
        return "\n".join(sorted(lines))
