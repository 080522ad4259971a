"""Prepare command - create, check out or sync a working branch."""

from __future__ import annotations

from pydantic import BaseModel, Field

from flowsync.report import render
from flowsync.workflow.executor import SyncExecutor
from flowsync.workflow.prepare import BranchPreparer


class PrepareCommand(BaseModel):
    """Get a branch ready for work.

    create: branch off an updated base. checkout: switch to a local or
    remote branch, then sync it with the base. sync: sync the branch
    with the base in place.
    """

    branch: str = Field(description="Branch to prepare")
    action: str = Field(description="create, checkout or sync")
    base: str | None = Field(
        default=None,
        description="Base branch (default: config.git.default_base)",
    )
    sync_strategy: str = Field(
        default="rebase",
        alias="sync-strategy",
        description="rebase, merge or fast-forward",
    )
    stash_changes: bool = Field(
        default=False,
        alias="stash-changes",
        description="Stash uncommitted changes before switching branches",
    )
    push_to_remote: bool = Field(
        default=False,
        alias="push-to-remote",
        description="Push the branch afterwards (sets upstream if new)",
    )

    async def run_workflow(self, state) -> int:
        preparer = BranchPreparer(SyncExecutor.from_config(state.config))
        report = await preparer.prepare_async(
            self.branch,
            self.action,
            base=self.base,
            sync_strategy=self.sync_strategy,
            stash_changes=self.stash_changes,
            push_to_remote=self.push_to_remote,
        )

        print(render(report))
        return 0 if report.success else 1
