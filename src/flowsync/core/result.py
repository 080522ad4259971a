"""Result types returned by the command port and the engine."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, Field

from flowsync.core.types import OperationState


class CommandResult(BaseModel):
    """Outcome of one command run through the port."""

    args: list[str] = Field(default_factory=list)
    stdout: str = ""
    success: bool = True
    error_text: str | None = None
    exit_code: int = 0

    @property
    def output(self) -> str:
        """stdout and error text together, for substring checks."""
        return "\n".join(
            part for part in (self.stdout, self.error_text or "") if part
        )


class AheadBehind(BaseModel):
    """Commit counts relative to an upstream ref.

    None means the count could not be determined, which is different
    from zero.
    """

    ahead: int | None = None
    behind: int | None = None

    @property
    def known(self) -> bool:
        return self.ahead is not None and self.behind is not None

    def describe(self) -> str:
        return f"{_count(self.ahead)} ahead, {_count(self.behind)} behind"


def _count(value: int | None) -> str:
    return "unknown" if value is None else str(value)


class Outcome(StrEnum):
    """Terminal state of a sync attempt."""

    SUCCEEDED = "succeeded"
    CONTINUED = "continued"
    AWAITING_MANUAL_RESOLUTION = "awaiting-manual-resolution"
    FAILED = "failed"


class FailureKind(StrEnum):
    UNKNOWN_STRATEGY = "unknown-strategy"
    PRECONDITION = "precondition"
    DIVERGENCE = "divergence"
    SYNC = "sync"
    CONTINUATION = "continuation"


class SyncReport(BaseModel):
    """Everything a caller needs to know about one sync attempt."""

    outcome: Outcome
    message: str
    failure: FailureKind | None = None
    steps: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    conflicted_files: list[str] = Field(default_factory=list)
    resolved_files: list[str] = Field(default_factory=list)
    target_branch: str | None = None
    upstream: str | None = None
    strategy: str | None = None
    before: AheadBehind | None = None
    after: AheadBehind | None = None
    current_branch: str | None = None

    @property
    def success(self) -> bool:
        return self.outcome in (Outcome.SUCCEEDED, Outcome.CONTINUED)


class BranchReport(BaseModel):
    """Result of preparing a branch (create, checkout or sync)."""

    action: str
    branch: str
    success: bool
    message: str
    steps: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    conflicted_files: list[str] = Field(default_factory=list)
    current_branch: str | None = None
    sync: SyncReport | None = None


class FileReport(BaseModel):
    """Per-file section of a workbench report."""

    path: str
    total_conflicts: int = 0
    resolved: int = 0
    details: list[str] = Field(default_factory=list)


class WorkbenchReport(BaseModel):
    """Result of one conflict workbench action."""

    action: str
    success: bool
    message: str
    operation: OperationState = OperationState.NONE
    files: list[FileReport] = Field(default_factory=list)
    steps: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    continuation_command: str | None = None
