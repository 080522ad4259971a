"""Finalize node - after counts, optional force push, stash restore."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic_graph import BaseNode, End, GraphRunContext

from flowsync.core.result import Outcome, SyncReport
from flowsync.git import commands
from flowsync.workflow.state import SyncRun


def restore_stash(run: SyncRun) -> None:
    """Pop the stash taken before the branch switch.

    Failure leaves the changes in the stash and is only a warning.
    """
    if not run.stashed:
        return
    result = run.port.execute(commands.stash_pop())
    if result.success:
        run.stashed = False
        run.step("Restored stashed changes")
    else:
        run.warn(
            "Failed to restore stashed changes (they remain in the "
            f"stash): {result.error_text}"
        )


@dataclass
class Finalize(BaseNode[SyncRun, None, SyncReport]):
    """Record the result of a successful sync."""

    continued: bool = False

    async def run(self, ctx: GraphRunContext[SyncRun]) -> End[SyncReport]:
        run = ctx.state
        target = run.target_branch

        run.record_after()

        if run.request.force_push and (run.after.ahead or 0) > 0:
            result = run.port.execute(
                commands.force_push(run.git.remote, target)
            )
            if result.success:
                run.step(
                    f"Force pushed changes to {run.git.remote}/{target}"
                )
            else:
                run.warn(f"Failed to force push: {result.error_text}")

        if run.inspector.current_branch() == target:
            restore_stash(run)
        elif run.stashed:
            run.warn("Not on the target branch; stashed changes kept")

        outcome = Outcome.CONTINUED if self.continued else Outcome.SUCCEEDED
        message = (
            f'Successfully synced branch "{target}" with '
            f'"{run.request.with_branch}"'
        )
        return End(run.report(outcome, message))
