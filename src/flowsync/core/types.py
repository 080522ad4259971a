"""Enumerations shared across the engine."""

from __future__ import annotations

from enum import StrEnum

from flowsync.core.errors import UnknownStrategyError


class _ParsableEnum(StrEnum):
    """StrEnum with a strict parse() that names the strategy kind."""

    @classmethod
    def _kind(cls) -> str:
        return cls.__name__

    @classmethod
    def parse(cls, value):
        """Convert a member or its string value to a member.

        Raises:
            UnknownStrategyError: If value is not a member value
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise UnknownStrategyError(
                cls._kind(), value, [m.value for m in cls]
            ) from None


class SyncStrategy(_ParsableEnum):
    """Git operation used to bring a branch up to date."""

    FAST_FORWARD = "fast-forward"
    MERGE = "merge"
    REBASE = "rebase"

    @classmethod
    def _kind(cls) -> str:
        return "sync"


class AutoResolveStrategy(_ParsableEnum):
    """Policy for conflicts hit during a sync."""

    OURS = "ours"
    THEIRS = "theirs"
    SMART = "smart"
    NONE = "none"

    @classmethod
    def _kind(cls) -> str:
        return "auto-resolve"


class OperationState(StrEnum):
    """Suspended VCS operation, if any."""

    NONE = "none"
    MERGE = "merge"
    REBASE = "rebase"
    CHERRY_PICK = "cherry-pick"


class BranchAction(_ParsableEnum):
    """What prepare-branch does with the branch."""

    CREATE = "create"
    CHECKOUT = "checkout"
    SYNC = "sync"

    @classmethod
    def _kind(cls) -> str:
        return "branch action"
