"""Rules for conflicts where one side is blank."""

from flowsync.rules.base import Rule, is_blank


class TheirsWhenOursEmpty(Rule):
    category = "theirs (ours empty)"

    def matches(self, ours: str, theirs: str) -> bool:
        return is_blank(ours) and not is_blank(theirs)

    def resolve(self, ours: str, theirs: str) -> str:
        return theirs


class OursWhenTheirsEmpty(Rule):
    category = "ours (theirs empty)"

    def matches(self, ours: str, theirs: str) -> bool:
        return not is_blank(ours) and is_blank(theirs)

    def resolve(self, ours: str, theirs: str) -> str:
        return ours
