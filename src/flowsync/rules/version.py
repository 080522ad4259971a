"""Prefer the incoming side of version bumps."""

import re

from flowsync.rules.base import Rule

VERSION_PATTERN = re.compile(r'version|VERSION|"v?\d+\.\d+\.\d+"')


class TheirsForVersionBump(Rule):
    category = "theirs (version update)"

    def matches(self, ours: str, theirs: str) -> bool:
        return bool(
            VERSION_PATTERN.search(ours) and VERSION_PATTERN.search(theirs)
        )

    def resolve(self, ours: str, theirs: str) -> str:
        return theirs
