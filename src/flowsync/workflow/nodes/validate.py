"""Validate node - check preconditions, switch branch and fetch."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic_graph import BaseNode, GraphRunContext

from flowsync.core.errors import PreconditionError
from flowsync.core.log import logger
from flowsync.core.result import SyncReport
from flowsync.core.types import AutoResolveStrategy, SyncStrategy
from flowsync.git import commands
from flowsync.workflow.state import SyncRun


@dataclass
class Validate(BaseNode[SyncRun, None, SyncReport]):
    """Check every precondition before the repository is touched.

    Order: strategies, repository, target branch, upstream on the
    remote, clean tree for a branch switch. Then switch, fetch and
    record the "before" ahead/behind counts.
    """

    async def run(self, ctx: GraphRunContext[SyncRun]) -> Synchronize:
        run = ctx.state
        request = run.request
        inspector = run.inspector
        remote = run.git.remote

        # Raises UnknownStrategyError before any command executes
        run.strategy = SyncStrategy.parse(request.strategy)
        run.auto_resolve = AutoResolveStrategy.parse(request.auto_resolve)

        if not inspector.is_repository():
            raise PreconditionError("Not in a git repository")

        current = inspector.current_branch()
        target = request.target_branch or current
        if not target:
            raise PreconditionError(
                "Cannot determine target branch "
                "(detached HEAD and no branch specified)"
            )
        run.target_branch = target
        run.upstream = f"{remote}/{request.with_branch}"

        run.step(f"Target branch: {target}")
        run.step(f"Syncing with: {request.with_branch}")
        run.step(f"Strategy: {run.strategy}")

        if not inspector.branch_exists_locally(target):
            raise PreconditionError(
                f'Target branch "{target}" does not exist locally'
            )
        if not inspector.branch_exists_on_remote(request.with_branch):
            raise PreconditionError(
                f'Source branch "{request.with_branch}" does not exist '
                f'on remote "{remote}"'
            )

        if current != target:
            self._switch(run, target)

        fetch = run.port.execute(commands.fetch(remote, request.with_branch))
        if not fetch.success:
            raise PreconditionError(
                f"Failed to fetch updates: {fetch.error_text}"
            )
        run.step(f"Fetched latest updates from {run.upstream}")

        run.before = inspector.ahead_behind(target, run.upstream)
        run.step(f"Before sync: {run.before.describe()} {run.upstream}")

        from flowsync.workflow.nodes.synchronize import Synchronize
        return Synchronize()

    @staticmethod
    def _switch(run: SyncRun, target: str) -> None:
        if not run.inspector.is_working_directory_clean():
            if not run.request.stash_changes:
                raise PreconditionError(
                    "Working directory not clean. Commit or stash changes "
                    "before switching branches."
                )
            stash = run.port.execute(
                commands.stash_push(run.git.stash_message)
            )
            if not stash.success:
                raise PreconditionError(
                    f"Failed to stash changes: {stash.error_text}"
                )
            run.stashed = True
            run.step("Stashed uncommitted changes")

        checkout = run.port.execute(commands.checkout(target))
        if not checkout.success:
            raise PreconditionError(
                f"Failed to checkout target branch: {checkout.error_text}"
            )
        logger.debug("Switched branch", branch=target)
        run.step(f"Checked out target branch: {target}")

