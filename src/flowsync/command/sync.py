"""Sync command - bring a branch up to date with a remote branch."""

from __future__ import annotations

from pydantic import BaseModel, Field

from flowsync.core.log import logger
from flowsync.report import render
from flowsync.workflow.executor import SyncExecutor
from flowsync.workflow.state import SyncRequest


class SyncCommand(BaseModel):
    """Synchronize a branch with a branch on the remote.

    Runs a fast-forward, merge or rebase against <remote>/<with-branch>.
    Conflicts are left for manual resolution unless --auto-resolve
    picks ours, theirs or smart.
    """

    with_branch: str = Field(
        alias="with-branch",
        description="Remote branch to sync with (e.g. main)",
    )
    target_branch: str | None = Field(
        default=None,
        alias="target-branch",
        description="Branch to sync (default: current branch)",
    )
    strategy: str = Field(
        default="merge",
        description="fast-forward, merge or rebase",
    )
    auto_resolve: str = Field(
        default="none",
        alias="auto-resolve",
        description="Conflict policy: ours, theirs, smart or none",
    )
    force_push: bool = Field(
        default=False,
        alias="force-push",
        description="Push with --force-with-lease when ahead afterwards",
    )
    stash_changes: bool = Field(
        default=False,
        alias="stash-changes",
        description="Stash uncommitted changes if a branch switch is needed",
    )

    def request(self) -> SyncRequest:
        return SyncRequest(
            with_branch=self.with_branch,
            target_branch=self.target_branch,
            strategy=self.strategy,
            auto_resolve=self.auto_resolve,
            force_push=self.force_push,
            stash_changes=self.stash_changes,
        )

    async def run_workflow(self, state) -> int:
        """Run the sync graph and print its report.

        Returns:
            Exit code (0 = succeeded or continued)
        """
        executor = SyncExecutor.from_config(state.config)
        report = await executor.run_async(self.request())

        logger.info("Sync command finished", outcome=report.outcome.value)
        print(render(report))
        return 0 if report.success else 1
