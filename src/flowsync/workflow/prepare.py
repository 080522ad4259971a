"""Branch preparation: create, check out or sync a working branch."""

from __future__ import annotations

import asyncio

from flowsync.core.errors import FlowsyncError, PreconditionError
from flowsync.core.log import logger
from flowsync.core.result import BranchReport, Outcome, SyncReport
from flowsync.core.types import BranchAction, SyncStrategy
from flowsync.git import commands
from flowsync.workflow.executor import SyncExecutor
from flowsync.workflow.state import SyncRequest

_DONE = {
    BranchAction.CREATE: "created",
    BranchAction.CHECKOUT: "checked out",
    BranchAction.SYNC: "synced",
}


class _Progress:
    """Steps and warnings gathered while preparing a branch."""

    def __init__(self):
        self.steps: list[str] = []
        self.warnings: list[str] = []
        self.conflicted_files: list[str] = []
        self.sync: SyncReport | None = None
        self.stashed = False

    def step(self, message: str) -> None:
        self.steps.append(message)
        logger.info(message)

    def warn(self, message: str) -> None:
        self.warnings.append(message)
        logger.warn(message)


class BranchPreparer:
    """Gets a branch ready for work.

    Syncing with the base branch goes through the same SyncExecutor as
    `flowsync sync`. Conflicts found there are reported as warnings plus
    the conflicted file list; they do not fail the preparation.
    """

    def __init__(self, executor: SyncExecutor):
        self.executor = executor
        self.port = executor.port
        self.inspector = executor.inspector
        self.remote = executor.git.remote

    async def prepare_async(
        self,
        branch: str,
        action: BranchAction | str,
        base: str | None = None,
        sync_strategy: SyncStrategy | str = SyncStrategy.REBASE,
        stash_changes: bool = False,
        push_to_remote: bool = False,
    ) -> BranchReport:
        progress = _Progress()
        base = base or self.executor.git.default_base

        try:
            action = BranchAction.parse(action)
            sync_strategy = SyncStrategy.parse(sync_strategy)

            if not self.inspector.is_repository():
                raise PreconditionError("Not in a git repository")

            current = self.inspector.current_branch()
            progress.step(f"Current branch: {current or 'detached HEAD'}")

            fetch = self.port.execute(commands.fetch(self.remote))
            if fetch.success:
                progress.step("Fetched latest updates from remote")
            else:
                progress.warn(
                    f"Failed to fetch from remote: {fetch.error_text}"
                )

            if action is BranchAction.CREATE or current != branch:
                self._ensure_clean(progress, stash_changes)

            if action is BranchAction.CREATE:
                self._create(progress, branch, base)
            elif action is BranchAction.CHECKOUT:
                self._checkout(progress, branch)
                if base and base != branch:
                    await self._sync_with_base(
                        progress, branch, base, sync_strategy
                    )
            else:
                if current != branch:
                    self._switch(progress, branch)
                await self._sync_with_base(progress, branch, base, sync_strategy)

            if push_to_remote and action is not BranchAction.SYNC:
                self._push(progress, branch)

            if progress.stashed:
                self._restore(progress, branch)

        except FlowsyncError as e:
            if progress.stashed:
                self._pop(progress)
            verb = action.value if isinstance(action, BranchAction) else action
            logger.error("Branch preparation failed", branch=branch,
                         error=str(e))
            return BranchReport(
                action=str(verb),
                branch=branch,
                success=False,
                message=f'Failed to {verb} branch "{branch}": {e}',
                steps=progress.steps,
                warnings=progress.warnings,
                conflicted_files=progress.conflicted_files,
                sync=progress.sync,
            )

        return BranchReport(
            action=action.value,
            branch=branch,
            success=True,
            message=f'Successfully {_DONE[action]} branch "{branch}"',
            steps=progress.steps,
            warnings=progress.warnings,
            conflicted_files=progress.conflicted_files,
            current_branch=self.inspector.current_branch(),
            sync=progress.sync,
        )

    def prepare(self, branch: str, action: BranchAction | str, **kwargs):
        """Synchronous wrapper around prepare_async()."""
        return asyncio.run(self.prepare_async(branch, action, **kwargs))

    def _ensure_clean(self, progress: _Progress, stash_changes: bool) -> None:
        """A branch switch needs a clean tree or an explicit stash."""
        if self.inspector.is_working_directory_clean():
            return
        if not stash_changes:
            raise PreconditionError(
                "Working directory not clean. Commit or stash changes "
                "before switching branches."
            )
        result = self.port.execute(
            commands.stash_push(self.executor.git.stash_message)
        )
        if not result.success:
            raise PreconditionError(
                f"Failed to stash changes: {result.error_text}"
            )
        progress.stashed = True
        progress.step("Stashed uncommitted changes")

    def _restore(self, progress: _Progress, branch: str) -> None:
        """Pop the stash unless the sync stopped on conflicts."""
        sync = progress.sync
        if sync and sync.outcome is Outcome.AWAITING_MANUAL_RESOLUTION:
            progress.warn(
                "Uncommitted changes remain stashed; run `git stash pop` "
                "once the conflicts are resolved"
            )
        elif self.inspector.current_branch() == branch:
            self._pop(progress)

    def _pop(self, progress: _Progress) -> None:
        result = self.port.execute(commands.stash_pop())
        if result.success:
            progress.stashed = False
            progress.step("Restored previously stashed changes")
        else:
            progress.warn(
                "Failed to restore stashed changes - they remain in stash"
            )

    def _create(self, progress: _Progress, branch: str, base: str) -> None:
        if self.inspector.branch_exists_locally(branch):
            raise PreconditionError(f'Branch "{branch}" already exists locally')

        if self.inspector.branch_exists_on_remote(base):
            checkout = self.port.execute(commands.checkout(base))
            if checkout.success:
                progress.step(f"Checked out base branch: {base}")
                pull = self.port.execute(commands.pull(self.remote, base))
                if pull.success:
                    progress.step("Updated base branch with latest changes")
                else:
                    progress.warn(
                        f"Failed to update base branch: {pull.error_text}"
                    )
            else:
                progress.warn(
                    f"Failed to checkout base branch: {checkout.error_text}"
                )

        created = self.port.execute(commands.checkout_new(branch))
        if not created.success:
            raise PreconditionError(
                f"Failed to create branch: {created.error_text}"
            )
        progress.step(f"Created and checked out new branch: {branch}")

    def _checkout(self, progress: _Progress, branch: str) -> None:
        if self.inspector.branch_exists_locally(branch):
            result = self.port.execute(commands.checkout(branch))
            if not result.success:
                raise PreconditionError(
                    f"Failed to checkout local branch: {result.error_text}"
                )
            progress.step(f"Checked out existing local branch: {branch}")
        elif self.inspector.branch_exists_on_remote(branch):
            result = self.port.execute(
                commands.checkout_new(branch, f"{self.remote}/{branch}")
            )
            if not result.success:
                raise PreconditionError(
                    f"Failed to checkout remote branch: {result.error_text}"
                )
            progress.step(
                f"Created local tracking branch from remote: {branch}"
            )
        else:
            raise PreconditionError(
                f'Branch "{branch}" does not exist locally or on remote'
            )

    def _switch(self, progress: _Progress, branch: str) -> None:
        if not self.inspector.branch_exists_locally(branch):
            raise PreconditionError(f'Branch "{branch}" does not exist locally')
        result = self.port.execute(commands.checkout(branch))
        if not result.success:
            raise PreconditionError(
                f"Failed to checkout branch: {result.error_text}"
            )
        progress.step(f"Checked out branch: {branch}")

    async def _sync_with_base(
        self,
        progress: _Progress,
        branch: str,
        base: str,
        strategy: SyncStrategy,
    ) -> None:
        report = await self.executor.run_async(SyncRequest(
            with_branch=base,
            target_branch=branch,
            strategy=strategy,
        ))
        progress.sync = report
        progress.steps.extend(report.steps)
        progress.warnings.extend(report.warnings)

        if report.outcome is Outcome.AWAITING_MANUAL_RESOLUTION:
            label = "Rebase" if strategy is SyncStrategy.REBASE else "Merge"
            progress.conflicted_files = list(report.conflicted_files)
            progress.warn(
                f"{label} conflicts detected. Run 'git status' to see "
                "conflicted files."
            )
            progress.step(
                f"{label} initiated but conflicts need manual resolution"
            )
        elif not report.success:
            progress.warn(f"Sync with {base} failed: {report.message}")

    def _push(self, progress: _Progress, branch: str) -> None:
        if not self.inspector.branch_exists_on_remote(branch):
            result = self.port.execute(
                commands.push(self.remote, branch, set_upstream=True)
            )
            done = f"Pushed branch to remote and set up tracking: {branch}"
        else:
            result = self.port.execute(commands.push(self.remote, branch))
            done = f"Pushed changes to remote branch: {branch}"

        if result.success:
            progress.step(done)
        else:
            progress.warn(f"Failed to push to remote: {result.error_text}")
