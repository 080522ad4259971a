"""Argument arrays for every git invocation the engine makes.

Each function returns a fresh list; callers never build git command
lines by string formatting.
"""

from flowsync.core.types import OperationState

GIT = "git"


def git_dir() -> list[str]:
    return [GIT, "rev-parse", "--git-dir"]


def show_toplevel() -> list[str]:
    return [GIT, "rev-parse", "--show-toplevel"]


def show_current_branch() -> list[str]:
    return [GIT, "branch", "--show-current"]


def status_porcelain() -> list[str]:
    return [GIT, "status", "--porcelain"]


def list_local_branch(name: str) -> list[str]:
    return [GIT, "branch", "--list", name]


def list_remote_heads(remote: str, name: str) -> list[str]:
    return [GIT, "ls-remote", "--heads", remote, name]


def left_right_count(upstream_ref: str, local_ref: str) -> list[str]:
    """Count commits on each side of upstream...local.

    Output is "<left>\\t<right>": left = only in upstream (behind),
    right = only in local (ahead).
    """
    return [
        GIT, "rev-list", "--left-right", "--count",
        f"{upstream_ref}...{local_ref}",
    ]


def unmerged_files() -> list[str]:
    return [GIT, "diff", "--name-only", "--diff-filter=U"]


def path_is_file(path: str) -> list[str]:
    return ["test", "-f", path]


def path_is_dir(path: str) -> list[str]:
    return ["test", "-d", path]


def checkout(branch: str) -> list[str]:
    return [GIT, "checkout", branch]


def checkout_new(branch: str, start_point: str | None = None) -> list[str]:
    args = [GIT, "checkout", "-b", branch]
    if start_point:
        args.append(start_point)
    return args


def checkout_side(side: str, path: str) -> list[str]:
    """Take one side of a conflicted file (side is 'ours' or 'theirs')."""
    return [GIT, "checkout", f"--{side}", "--", path]


def add(path: str) -> list[str]:
    return [GIT, "add", "--", path]


def fetch(remote: str, branch: str | None = None) -> list[str]:
    args = [GIT, "fetch", remote]
    if branch:
        args.append(branch)
    return args


def pull(remote: str, branch: str) -> list[str]:
    return [GIT, "pull", remote, branch]


def merge_ff_only(upstream_ref: str) -> list[str]:
    return [GIT, "merge", "--ff-only", upstream_ref]


def merge_no_ff(upstream_ref: str, message: str) -> list[str]:
    return [GIT, "merge", "--no-ff", upstream_ref, "-m", message]


def rebase(upstream_ref: str) -> list[str]:
    return [GIT, "rebase", upstream_ref]


def commit_no_edit() -> list[str]:
    return [GIT, "commit", "--no-edit"]


def push(remote: str, branch: str, set_upstream: bool = False) -> list[str]:
    args = [GIT, "push"]
    if set_upstream:
        args.append("-u")
    return args + [remote, branch]


def force_push(remote: str, branch: str) -> list[str]:
    return [GIT, "push", "--force-with-lease", remote, branch]


def stash_push(message: str) -> list[str]:
    return [GIT, "stash", "push", "-m", message]


def stash_pop() -> list[str]:
    return [GIT, "stash", "pop"]


def stash_create() -> list[str]:
    return [GIT, "stash", "create"]


def stash_store(sha: str, message: str) -> list[str]:
    return [GIT, "stash", "store", "-m", message, sha]


_CONTINUE = {
    OperationState.MERGE: [GIT, "commit", "--no-edit"],
    OperationState.REBASE: [GIT, "rebase", "--continue"],
    OperationState.CHERRY_PICK: [GIT, "cherry-pick", "--continue"],
}

_ABORT = {
    OperationState.MERGE: [GIT, "merge", "--abort"],
    OperationState.REBASE: [GIT, "rebase", "--abort"],
    OperationState.CHERRY_PICK: [GIT, "cherry-pick", "--abort"],
}


def continue_operation(state: OperationState) -> list[str] | None:
    """Command that resumes a suspended operation, None if none."""
    args = _CONTINUE.get(state)
    return list(args) if args else None


def abort_operation(state: OperationState) -> list[str] | None:
    args = _ABORT.get(state)
    return list(args) if args else None
