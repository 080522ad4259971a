"""ResolveConflicts node - auto-resolve, stage and continue."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic_graph import BaseNode, End, GraphRunContext

from flowsync.core.errors import ContinuationError
from flowsync.core.result import Outcome, SyncReport
from flowsync.core.types import (
    AutoResolveStrategy,
    OperationState,
    SyncStrategy,
)
from flowsync.git import commands
from flowsync.workflow.state import SyncRun


def manual_message(run: SyncRun) -> str:
    files = ", ".join(run.conflicted_files)
    return (
        f'Sync conflicts detected in branch "{run.target_branch}": {files}'
    )


def awaiting_manual(run: SyncRun) -> End[SyncReport]:
    run.record_after()
    keep_stash_warning(run)
    return End(run.report(
        Outcome.AWAITING_MANUAL_RESOLUTION, manual_message(run)
    ))


def keep_stash_warning(run: SyncRun) -> None:
    if run.stashed:
        run.warn(
            "Uncommitted changes remain stashed; run `git stash pop` "
            "once the conflicts are resolved"
        )


@dataclass
class ResolveConflicts(BaseNode[SyncRun, None, SyncReport]):
    """Apply the auto-resolve policy to every unmerged file."""

    async def run(
        self, ctx: GraphRunContext[SyncRun]
    ) -> Finalize | End[SyncReport]:
        run = ctx.state

        if run.auto_resolve is AutoResolveStrategy.NONE:
            return awaiting_manual(run)

        for path in run.conflicted_files:
            self._resolve_one(run, path)

        if not run.resolved_files:
            return awaiting_manual(run)

        if run.strategy is SyncStrategy.REBASE:
            operation = OperationState.REBASE
            done = "Continued rebase after conflict resolution"
        else:
            operation = OperationState.MERGE
            done = "Completed merge after conflict resolution"
        result = run.port.execute(commands.continue_operation(operation))

        if not result.success:
            raise ContinuationError(
                "Failed to continue sync after conflict resolution: "
                f"{result.error_text}"
            )
        run.step(done)

        from flowsync.workflow.nodes.finalize import Finalize
        return Finalize(continued=True)

    @staticmethod
    def _resolve_one(run: SyncRun, path: str) -> None:
        strategy = run.auto_resolve.value
        outcome = run.resolver.resolve_conflicted_file(path, run.auto_resolve)
        if not outcome.fully_resolved:
            detail = "; ".join(outcome.descriptions) or "unresolved blocks"
            run.warn(f"Failed to auto-resolve conflict in {path}: {detail}")
            return

        if not run.resolver.stage(path):
            run.warn(f"Resolved conflict in {path} but failed to stage")
            return

        run.resolved_files.append(path)
        run.step(
            f"Auto-resolved conflict in {path} using '{strategy}' strategy"
        )
