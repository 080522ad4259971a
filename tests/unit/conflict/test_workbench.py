"""Tests for the conflict workbench actions."""

import pytest

from flowsync.conflict.resolver import ConflictResolver
from flowsync.conflict.workbench import (
    BACKUP_MESSAGE,
    ConflictWorkbench,
    parse_auto_strategy,
)
from flowsync.core.config import ResolveConfig
from flowsync.core.errors import UnknownStrategyError
from flowsync.core.types import AutoResolveStrategy, OperationState

GIT_DIR = ("git", "rev-parse", "--git-dir")
UNMERGED = ("git", "diff", "--name-only", "--diff-filter=U")
MERGE_HEAD = ("test", "-f", ".git/MERGE_HEAD")
REBASE_APPLY = ("test", "-d", ".git/rebase-apply")
REBASE_MERGE = ("test", "-d", ".git/rebase-merge")
CHERRY_PICK_HEAD = ("test", "-f", ".git/CHERRY_PICK_HEAD")


def block(ours: str, theirs: str) -> str:
    return f"<<<<<<< HEAD\n{ours}\n=======\n{theirs}\n>>>>>>> main\n"


def in_operation(port, operation: OperationState):
    """Script the marker files so only `operation` is in progress."""
    markers = {
        OperationState.MERGE: [MERGE_HEAD],
        OperationState.REBASE: [REBASE_MERGE],
        OperationState.CHERRY_PICK: [CHERRY_PICK_HEAD],
        OperationState.NONE: [],
    }[operation]
    for args in (MERGE_HEAD, REBASE_APPLY, REBASE_MERGE, CHERRY_PICK_HEAD):
        if args not in markers:
            port.fail(args)
    return port


@pytest.fixture
def repo(port):
    port.on(GIT_DIR, stdout=".git")
    return in_operation(port, OperationState.MERGE)


@pytest.fixture
def workbench(repo, tmp_path):
    resolver = ConflictResolver(repo, workdir=tmp_path)
    return ConflictWorkbench(repo, resolver=resolver)


@pytest.fixture
def imports_file(tmp_path):
    (tmp_path / "deps.py").write_text(block("import os", "import sys"))
    return "deps.py"


@pytest.fixture
def manual_file(tmp_path):
    (tmp_path / "calc.py").write_text(block("x = a - b", "x = b - a"))
    return "calc.py"


class TestParseAutoStrategy:
    @pytest.mark.parametrize("value", ["ours", "theirs", "smart", "SMART"])
    def test_accepts_auto_strategies(self, value):
        assert parse_auto_strategy(value) is AutoResolveStrategy(value.lower())

    @pytest.mark.parametrize("value", ["none", "magic"])
    def test_rejects_everything_else(self, value):
        with pytest.raises(UnknownStrategyError) as exc:
            parse_auto_strategy(value)
        assert exc.value.allowed == ["ours", "theirs", "smart"]


def test_every_action_needs_a_repository(port, tmp_path):
    port.fail(GIT_DIR, "fatal: not a git repository")
    workbench = ConflictWorkbench(port)

    for action, report in [
        ("status", workbench.status()),
        ("analyze", workbench.analyze()),
        ("auto-resolve", workbench.auto_resolve()),
        ("manual-assist", workbench.manual_assist()),
        ("abort", workbench.abort()),
    ]:
        assert not report.success
        assert report.message == (
            f"Failed to {action} conflicts: Not in a git repository"
        )


def test_status_counts_blocks(workbench, repo, tmp_path, imports_file):
    (tmp_path / "two.txt").write_text(block("a", "b") + block("c", "d"))
    repo.on(UNMERGED, stdout="deps.py\ntwo.txt")

    report = workbench.status()

    assert report.success
    assert report.operation is OperationState.MERGE
    assert report.message == "Currently in merge operation"
    assert [(f.path, f.total_conflicts) for f in report.files] == [
        ("deps.py", 1), ("two.txt", 2),
    ]


def test_status_without_operation(port):
    port.on(GIT_DIR, stdout=".git")
    in_operation(port, OperationState.NONE)

    report = ConflictWorkbench(port).status()

    assert report.operation is OperationState.NONE
    assert report.message == (
        "No active merge/rebase operation; no conflicts found"
    )


def test_analyze_limits_listed_blocks(workbench, repo, tmp_path):
    (tmp_path / "many.txt").write_text(
        "".join(block(f"ours {i}", f"theirs {i}") for i in range(5))
    )

    report = workbench.analyze(["many.txt"])

    (file,) = report.files
    assert file.total_conflicts == 5
    assert file.details[0] == "Lines 1-5: combined additions"
    assert file.details[-1] == "... and 2 more conflicts"
    assert len(file.details) == 4
    assert report.message == "5 total conflicts in 1 files"


def test_analyze_preview_count_is_configurable(repo, tmp_path):
    (tmp_path / "many.txt").write_text(block("a", "b") + block("c", "d"))
    config = ResolveConfig(analysis_preview_blocks=1)
    workbench = ConflictWorkbench(
        repo, config=config,
        resolver=ConflictResolver(repo, config, workdir=tmp_path),
    )

    (file,) = workbench.analyze(["many.txt"]).files

    assert file.details[-1] == "... and 1 more conflicts"


def test_analyze_with_nothing_conflicted(workbench):
    report = workbench.analyze()

    assert report.success
    assert report.files == []
    assert report.message == "No conflicted files found to analyze"


def test_unknown_strategy_runs_nothing(workbench, repo):
    with pytest.raises(UnknownStrategyError):
        workbench.auto_resolve(strategy="none")
    assert repo.calls == []


def test_auto_resolve_backs_up_stages_and_continues(
    workbench, repo, tmp_path, imports_file
):
    repo.on(UNMERGED, stdout="deps.py")
    repo.on(["git", "stash", "create"], stdout="0123456789abcdef")

    report = workbench.auto_resolve("smart")

    assert report.success
    assert report.message == "Auto-resolved 1 of 1 files using 'smart' strategy"
    assert repo.called("git", "stash", "store", "-m", BACKUP_MESSAGE,
                       "0123456789abcdef")
    assert "Created backup of current changes (01234567)" in report.steps
    assert repo.called("git", "add", "--", "deps.py")
    assert repo.called("git", "commit", "--no-edit")
    assert report.continuation_command == "git commit --no-edit"
    assert (tmp_path / "deps.py").read_text() == "import os\nimport sys\n"


def test_backup_with_clean_tree(workbench, repo, imports_file):
    report = workbench.auto_resolve("smart", files=[imports_file])

    assert "No local changes to back up" in report.steps
    assert not repo.commands_starting("git", "stash", "store")


def test_no_backup_when_disabled(workbench, repo, imports_file):
    workbench.auto_resolve("smart", files=[imports_file], backup=False)

    assert not repo.commands_starting("git", "stash")


def test_partial_resolution_does_not_continue(
    workbench, repo, imports_file, manual_file
):
    report = workbench.auto_resolve(
        "smart", files=[imports_file, manual_file]
    )

    assert report.message == "Auto-resolved 1 of 2 files using 'smart' strategy"
    assert repo.called("git", "add", "--", "deps.py")
    assert not repo.called("git", "add", "--", "calc.py")
    assert not repo.called("git", "commit", "--no-edit")
    assert report.continuation_command is None
    assert report.warnings == [
        "Failed to resolve calc.py: No conflicts could be auto-resolved"
    ]


def test_continue_can_be_skipped(workbench, repo, imports_file):
    report = workbench.auto_resolve(
        "smart", files=[imports_file], continue_operation=False
    )

    assert not repo.called("git", "commit", "--no-edit")
    assert report.continuation_command is None


def test_failed_continue_is_a_warning(workbench, repo, imports_file):
    repo.fail(["git", "commit", "--no-edit"], "nothing to commit")

    report = workbench.auto_resolve("smart", files=[imports_file])

    assert report.success
    assert report.warnings == ["Failed to continue merge: nothing to commit"]
    assert report.continuation_command == "git commit --no-edit"


def test_preview_changes_nothing(workbench, repo, tmp_path, imports_file):
    before = (tmp_path / "deps.py").read_text()

    report = workbench.auto_resolve("smart", files=[imports_file],
                                    preview=True)

    assert (tmp_path / "deps.py").read_text() == before
    assert "PREVIEW MODE - No changes will be made" in report.steps
    assert "Would resolve deps.py" in report.steps
    assert report.message.startswith("PREVIEW")
    assert report.files[0].details == ["Line 1: would apply merged imports"]
    assert not repo.commands_starting("git", "stash")
    assert not repo.commands_starting("git", "add")
    assert not repo.commands_starting("git", "commit")


def test_whole_side_strategy(workbench, repo):
    report = workbench.auto_resolve("theirs", files=["a.txt"])

    assert repo.called("git", "checkout", "--theirs", "--", "a.txt")
    assert report.files[0].details == ["Took 'theirs' for whole file"]


def test_manual_assist_suggests(workbench, repo, tmp_path):
    (tmp_path / "mixed.txt").write_text(
        block("", "new line") + block("x = a - b", "x = b - a")
    )
    repo.on(UNMERGED, stdout="mixed.txt")

    report = workbench.manual_assist()

    assert report.files[0].details == [
        "Lines 1-5: Suggestion: Keep theirs (ours is empty)",
        "Lines 6-10: Suggestion: Review both versions carefully",
    ]
    assert report.continuation_command == "git commit --no-edit"
    assert not repo.commands_starting("git", "add")


def test_manual_assist_during_rebase(port, tmp_path, manual_file):
    port.on(GIT_DIR, stdout=".git")
    in_operation(port, OperationState.REBASE)
    workbench = ConflictWorkbench(
        port, resolver=ConflictResolver(port, workdir=tmp_path)
    )

    report = workbench.manual_assist([manual_file])

    assert report.continuation_command == "git rebase --continue"


class TestAbort:
    @pytest.mark.parametrize("operation, args", [
        (OperationState.MERGE, ("git", "merge", "--abort")),
        (OperationState.REBASE, ("git", "rebase", "--abort")),
        (OperationState.CHERRY_PICK, ("git", "cherry-pick", "--abort")),
    ])
    def test_aborts_the_active_operation(self, port, operation, args):
        port.on(GIT_DIR, stdout=".git")
        in_operation(port, operation)

        report = ConflictWorkbench(port).abort()

        assert report.success
        assert port.called(*args)
        assert report.steps == [
            "Aborting current operation",
            "Successfully aborted operation",
        ]

    def test_nothing_to_abort(self, port):
        port.on(GIT_DIR, stdout=".git")
        in_operation(port, OperationState.NONE)

        report = ConflictWorkbench(port).abort()

        assert report.success
        assert report.message == (
            "No active merge/rebase/cherry-pick operation to abort"
        )
        assert not port.commands_starting("git", "merge")

    def test_abort_failure(self, workbench, repo):
        repo.fail(["git", "merge", "--abort"], "fatal: no merge to abort")

        report = workbench.abort()

        assert not report.success
        assert report.message == (
            "Failed to abort operation: fatal: no merge to abort"
        )
