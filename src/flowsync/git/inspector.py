"""Read-only queries about the repository.

Nothing here mutates the repository. A failed query degrades to
"unknown" (None) or False instead of raising.
"""

from __future__ import annotations

import posixpath
from pathlib import Path

from flowsync.core.log import logger
from flowsync.core.result import AheadBehind
from flowsync.core.types import OperationState
from flowsync.git import commands
from flowsync.git.port import CommandPort


def parse_left_right(output: str) -> AheadBehind:
    """Parse `git rev-list --left-right --count upstream...local`.

    The left column counts commits only reachable from the upstream
    (behind), the right column commits only on the local ref (ahead).
    Anything other than exactly two integers is unknown.
    """
    parts = output.split()
    if len(parts) != 2:
        return AheadBehind()
    try:
        behind, ahead = int(parts[0]), int(parts[1])
    except ValueError:
        return AheadBehind()
    if behind < 0 or ahead < 0:
        return AheadBehind()
    return AheadBehind(ahead=ahead, behind=behind)


class RepositoryInspector:
    """Answers questions about a git checkout through a CommandPort."""

    def __init__(self, port: CommandPort, remote: str = "origin"):
        self.port = port
        self.remote = remote

    def is_repository(self) -> bool:
        return self.port.execute(commands.git_dir()).success

    def git_dir(self) -> str | None:
        result = self.port.execute(commands.git_dir())
        if not result.success or not result.stdout:
            return None
        return result.stdout.strip()

    def top_level(self) -> Path | None:
        """Root of the working tree, None outside a repository."""
        result = self.port.execute(commands.show_toplevel())
        if not result.success or not result.stdout.strip():
            return None
        return Path(result.stdout.strip())

    def current_branch(self) -> str | None:
        """Checked-out branch name, None when detached or unknown."""
        result = self.port.execute(commands.show_current_branch())
        if not result.success:
            return None
        return result.stdout.strip() or None

    def is_working_directory_clean(self) -> bool:
        result = self.port.execute(commands.status_porcelain())
        return result.success and not result.stdout.strip()

    def branch_exists_locally(self, name: str) -> bool:
        result = self.port.execute(commands.list_local_branch(name))
        if not result.success:
            return False
        # Lines look like "* main" or "  feature"
        return any(
            line.lstrip("*+ ").strip() == name
            for line in result.stdout.splitlines()
        )

    def branch_exists_on_remote(self, name: str) -> bool:
        result = self.port.execute(
            commands.list_remote_heads(self.remote, name)
        )
        return result.success and bool(result.stdout.strip())

    def ahead_behind(self, local_ref: str, upstream_ref: str) -> AheadBehind:
        result = self.port.execute(
            commands.left_right_count(upstream_ref, local_ref)
        )
        if not result.success:
            return AheadBehind()
        counts = parse_left_right(result.stdout)
        if not counts.known:
            logger.debug("Unparseable ahead/behind output",
                         output=result.stdout)
        return counts

    def operation_state(self) -> OperationState:
        """Which merge/rebase/cherry-pick is suspended, if any.

        When several markers exist the precedence is
        merge > rebase > cherry-pick.
        """
        gitdir = self.git_dir()
        if gitdir is None:
            return OperationState.NONE

        def exists(args) -> bool:
            return self.port.execute(args).success

        if exists(commands.path_is_file(posixpath.join(gitdir, "MERGE_HEAD"))):
            return OperationState.MERGE
        for name in ("rebase-apply", "rebase-merge"):
            if exists(commands.path_is_dir(posixpath.join(gitdir, name))):
                return OperationState.REBASE
        if exists(commands.path_is_file(
            posixpath.join(gitdir, "CHERRY_PICK_HEAD")
        )):
            return OperationState.CHERRY_PICK
        return OperationState.NONE

    def conflicted_files(self) -> list[str]:
        result = self.port.execute(commands.unmerged_files())
        if not result.success:
            return []
        return [
            line.strip() for line in result.stdout.splitlines()
            if line.strip()
        ]
