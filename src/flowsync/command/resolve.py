"""Resolve command - the conflict workbench actions."""

from __future__ import annotations

from pydantic import BaseModel, Field

from flowsync.conflict.workbench import ConflictWorkbench
from flowsync.core.errors import FlowsyncError
from flowsync.core.log import logger
from flowsync.report import render
from flowsync.workflow.executor import SyncExecutor

ACTIONS = ("status", "analyze", "auto-resolve", "manual-assist", "abort")


class ResolveCommand(BaseModel):
    """Inspect and resolve the conflicts of a suspended merge, rebase or
    cherry-pick."""

    action: str = Field(
        default="status",
        description="status, analyze, auto-resolve, manual-assist or abort",
    )
    strategy: str = Field(
        default="smart",
        description="auto-resolve strategy: ours, theirs or smart",
    )
    files: list[str] = Field(
        default_factory=list,
        description="Files to work on (default: all unmerged files)",
    )
    backup: bool = Field(
        default=True,
        description="Record a stash entry before auto-resolving",
    )
    continue_operation: bool = Field(
        default=True,
        alias="continue",
        description="Continue the operation once every file is resolved",
    )
    preview: bool = Field(
        default=False,
        description="Report what auto-resolve would do without changes",
    )

    def workbench(self, state) -> ConflictWorkbench:
        executor = SyncExecutor.from_config(state.config)
        return ConflictWorkbench(
            executor.port,
            inspector=executor.inspector,
            resolver=executor.resolver,
            config=state.config.resolve,
        )

    async def run_workflow(self, state) -> int:
        if self.action not in ACTIONS:
            print(f"FAILED: Unknown action: {self.action} "
                  f"(expected one of: {', '.join(ACTIONS)})")
            return 1

        bench = self.workbench(state)
        try:
            if self.action == "status":
                report = bench.status()
            elif self.action == "analyze":
                report = bench.analyze(self.files)
            elif self.action == "auto-resolve":
                report = bench.auto_resolve(
                    self.strategy,
                    files=self.files,
                    backup=self.backup,
                    continue_operation=self.continue_operation,
                    preview=self.preview,
                )
            elif self.action == "manual-assist":
                report = bench.manual_assist(self.files)
            else:
                report = bench.abort()
        except FlowsyncError as e:
            logger.error("Resolve failed", action=self.action, error=str(e))
            print(f"FAILED: Failed to {self.action} conflicts: {e}")
            return 1

        print(render(report))
        return 0 if report.success else 1
