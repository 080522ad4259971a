"""SyncExecutor - the entry point for branch synchronization."""

from __future__ import annotations

import asyncio
from pathlib import Path

from flowsync.conflict.resolver import ConflictResolver
from flowsync.core.config import GitConfig, ResolveConfig
from flowsync.core.errors import (
    ContinuationError,
    DivergenceError,
    FlowsyncError,
    PreconditionError,
    SyncFailedError,
    UnknownStrategyError,
)
from flowsync.core.log import logger
from flowsync.core.result import FailureKind, Outcome, SyncReport
from flowsync.git.inspector import RepositoryInspector
from flowsync.git.port import CommandPort, InvokeCommandPort
from flowsync.workflow.nodes.finalize import restore_stash
from flowsync.workflow.state import SyncRequest, SyncRun

FAILURE_KINDS: dict[type[FlowsyncError], FailureKind] = {
    UnknownStrategyError: FailureKind.UNKNOWN_STRATEGY,
    PreconditionError: FailureKind.PRECONDITION,
    DivergenceError: FailureKind.DIVERGENCE,
    SyncFailedError: FailureKind.SYNC,
    ContinuationError: FailureKind.CONTINUATION,
}


def failure_kind(error: FlowsyncError) -> FailureKind:
    for error_type, kind in FAILURE_KINDS.items():
        if isinstance(error, error_type):
            return kind
    return FailureKind.SYNC


class SyncExecutor:
    """Runs the sync graph for one SyncRequest.

    Every FlowsyncError raised by a node becomes a failed SyncReport
    that keeps the steps completed before the failure. Anything else
    propagates.
    """

    def __init__(
        self,
        port: CommandPort | None = None,
        git: GitConfig | None = None,
        resolve: ResolveConfig | None = None,
        workdir: Path | str | None = None,
    ):
        self.git = git or GitConfig()
        self.resolve = resolve or ResolveConfig()
        workdir = workdir or self.git.workdir
        self.port = port or InvokeCommandPort(
            workdir=workdir, timeout=self.git.timeout
        )
        self.inspector = RepositoryInspector(self.port, self.git.remote)
        if port is None and workdir is None:
            # git reports paths relative to the root, not the cwd
            workdir = self.inspector.top_level()
            self.port.workdir = workdir
        self.resolver = ConflictResolver(
            self.port, self.resolve, workdir=workdir
        )

    @classmethod
    def from_config(cls, config) -> SyncExecutor:
        """Build an executor from a loaded Config."""
        return cls(git=config.git, resolve=config.resolve)

    def new_run(self, request: SyncRequest) -> SyncRun:
        return SyncRun(
            request=request,
            git=self.git,
            resolve=self.resolve,
            port=self.port,
            inspector=self.inspector,
            resolver=self.resolver,
        )

    async def run_async(self, request: SyncRequest) -> SyncReport:
        from flowsync.workflow.graph import create_workflow
        from flowsync.workflow.nodes.validate import Validate

        run = self.new_run(request)
        workflow = create_workflow()

        with logger.span("sync", with_branch=request.with_branch,
                         strategy=str(request.strategy)):
            try:
                result = await workflow.run(Validate(), state=run)
            except FlowsyncError as e:
                kind = failure_kind(e)
                logger.error("Sync failed", failure=kind.value, error=str(e))
                run.record_after()
                restore_stash(run)
                return run.report(Outcome.FAILED, str(e), failure=kind)

        report = result.output
        logger.info("Sync finished", outcome=report.outcome.value)
        return report

    def run(self, request: SyncRequest) -> SyncReport:
        """Synchronous wrapper; runs the graph on a private event loop."""
        return asyncio.run(self.run_async(request))
