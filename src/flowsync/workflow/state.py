"""State carried through one run of the sync graph."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from flowsync.core.base import BaseState
from flowsync.core.config import GitConfig, ResolveConfig
from flowsync.core.log import logger
from flowsync.core.result import (
    AheadBehind,
    FailureKind,
    Outcome,
    SyncReport,
)
from flowsync.core.types import AutoResolveStrategy, SyncStrategy


class SyncRequest(BaseModel):
    """What the caller asked for.

    Strategies stay as given until Validate parses them, so an unknown
    name fails before any command runs.
    """

    with_branch: str
    target_branch: str | None = None
    strategy: SyncStrategy | str = SyncStrategy.MERGE
    auto_resolve: AutoResolveStrategy | str = AutoResolveStrategy.NONE
    force_push: bool = False
    stash_changes: bool = False


class SyncRun(BaseState):
    """Graph state: the request, its collaborators and what happened.

    port, inspector and resolver are the injected services; everything
    below them accumulates while the nodes run.
    """

    request: SyncRequest
    git: GitConfig = Field(default_factory=GitConfig)
    resolve: ResolveConfig = Field(default_factory=ResolveConfig)

    port: Any = None
    inspector: Any = None
    resolver: Any = None

    strategy: SyncStrategy | None = None
    auto_resolve: AutoResolveStrategy = AutoResolveStrategy.NONE
    target_branch: str | None = None
    upstream: str | None = None
    stashed: bool = False

    steps: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    conflicted_files: list[str] = Field(default_factory=list)
    resolved_files: list[str] = Field(default_factory=list)
    before: AheadBehind | None = None
    after: AheadBehind | None = None

    model_config = ConfigDict(arbitrary_types_allowed=True)

    def step(self, message: str) -> None:
        self.steps.append(message)
        logger.info(message)

    def warn(self, message: str) -> None:
        self.warnings.append(message)
        logger.warn(message)

    def record_after(self) -> None:
        """Count ahead/behind again once the sync has stopped.

        Runs only when the "before" counts were taken.
        """
        if self.before is None or self.after is not None:
            return
        self.after = self.inspector.ahead_behind(
            self.target_branch, self.upstream
        )
        self.step(f"After sync: {self.after.describe()} {self.upstream}")

    def report(
        self,
        outcome: Outcome,
        message: str,
        failure: FailureKind | None = None,
    ) -> SyncReport:
        """Snapshot the run as a SyncReport."""
        current = None
        if self.inspector is not None and outcome is not Outcome.FAILED:
            current = self.inspector.current_branch()
        return SyncReport(
            outcome=outcome,
            message=message,
            failure=failure,
            steps=list(self.steps),
            warnings=list(self.warnings),
            conflicted_files=list(self.conflicted_files),
            resolved_files=list(self.resolved_files),
            target_branch=self.target_branch,
            upstream=self.upstream,
            strategy=self.strategy.value if self.strategy else None,
            before=self.before,
            after=self.after,
            current_branch=current,
        )
