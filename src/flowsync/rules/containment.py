"""Rules for conflicts where one side already contains the other."""

from flowsync.rules.base import Rule


class OursIncludesTheirs(Rule):
    """Ours is a superset (plain substring test) of theirs."""

    category = "ours (includes theirs)"

    def matches(self, ours: str, theirs: str) -> bool:
        return theirs in ours

    def resolve(self, ours: str, theirs: str) -> str:
        return ours


class TheirsIncludesOurs(Rule):
    category = "theirs (includes ours)"

    def matches(self, ours: str, theirs: str) -> bool:
        return ours in theirs

    def resolve(self, ours: str, theirs: str) -> str:
        return theirs
