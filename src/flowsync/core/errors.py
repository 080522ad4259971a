"""Exceptions raised by the sync engine.

Workflow nodes raise these; SyncExecutor turns them into failed
reports that still carry the steps completed before the failure.
"""


class FlowsyncError(Exception):
    """Base class for expected, reportable failures."""


class UnknownStrategyError(FlowsyncError, ValueError):
    """A strategy name that is not one of the supported values."""

    def __init__(self, kind: str, value: object, allowed: list[str]):
        self.kind = kind
        self.value = value
        self.allowed = allowed
        super().__init__(
            f"Unknown {kind} strategy: {value!r} "
            f"(expected one of: {', '.join(allowed)})"
        )


class PreconditionError(FlowsyncError):
    """Repository is not in a state where the operation may start."""


class DivergenceError(FlowsyncError):
    """Fast-forward requested but the branches have diverged."""


class SyncFailedError(FlowsyncError):
    """The merge or rebase failed for a reason other than conflicts."""


class ContinuationError(FlowsyncError):
    """Resuming the merge/rebase after resolving conflicts failed."""
