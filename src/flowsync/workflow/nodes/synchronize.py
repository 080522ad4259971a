"""Synchronize node - run the fast-forward, merge or rebase."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic_graph import BaseNode, GraphRunContext

from flowsync.core.errors import DivergenceError, SyncFailedError
from flowsync.core.result import CommandResult, SyncReport
from flowsync.core.types import SyncStrategy
from flowsync.git import commands
from flowsync.workflow.state import SyncRun

DIVERGED_MARKER = "not possible to fast-forward"


@dataclass
class Synchronize(BaseNode[SyncRun, None, SyncReport]):
    """Attempt the sync once; conflicts go to ResolveConflicts."""

    async def run(
        self, ctx: GraphRunContext[SyncRun]
    ) -> Finalize | ResolveConflicts:
        run = ctx.state
        target = run.target_branch
        upstream = run.upstream

        from flowsync.workflow.nodes.finalize import Finalize
        from flowsync.workflow.nodes.resolve_conflicts import ResolveConflicts

        if run.strategy is SyncStrategy.FAST_FORWARD:
            result = run.port.execute(commands.merge_ff_only(upstream))
            if result.success:
                run.step(f"Fast-forwarded {target} to {upstream}")
                return Finalize()
            if DIVERGED_MARKER in result.output.lower():
                raise DivergenceError(
                    "Fast-forward not possible - branches have diverged"
                )
            raise SyncFailedError(f"Sync failed: {result.error_text}")

        if run.strategy is SyncStrategy.MERGE:
            result = run.port.execute(commands.merge_no_ff(
                upstream, f"Merge {upstream} into {target}"
            ))
            done = f"Merged {upstream} into {target}"
        else:
            result = run.port.execute(commands.rebase(upstream))
            done = f"Rebased {target} onto {upstream}"

        if result.success:
            run.step(done)
            return Finalize()

        if self._is_conflict(run, result):
            run.conflicted_files = run.inspector.conflicted_files()
            run.step(
                f"Conflicts detected in {len(run.conflicted_files)} file(s)"
            )
            return ResolveConflicts()

        raise SyncFailedError(f"Sync failed: {result.error_text}")

    @staticmethod
    def _is_conflict(run: SyncRun, result: CommandResult) -> bool:
        """Output names a conflict and git reports unmerged paths."""
        output = result.output.lower()
        mentioned = any(
            indicator.lower() in output
            for indicator in run.git.conflict_indicators
        )
        return mentioned and bool(run.inspector.conflicted_files())
