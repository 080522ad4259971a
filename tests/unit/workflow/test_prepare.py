"""Tests for BranchPreparer."""

import pytest

from flowsync.core.result import Outcome
from flowsync.workflow.executor import SyncExecutor
from flowsync.workflow.prepare import BranchPreparer

SHOW_CURRENT = ("git", "branch", "--show-current")
STATUS = ("git", "status", "--porcelain")
STASH_PUSH = ("git", "stash", "push", "-m", "Auto-stash by flowsync")
STASH_POP = ("git", "stash", "pop")


def on_branch(port, *names):
    """Successive `git branch --show-current` answers."""
    port.responses.pop(SHOW_CURRENT, None)
    for name in names:
        port.on(SHOW_CURRENT, stdout=name)


def local_branch(port, name, current=False):
    marker = "*" if current else " "
    port.on(["git", "branch", "--list", name], stdout=f"{marker} {name}")


def remote_branch(port, name):
    port.on(["git", "ls-remote", "--heads", "origin", name],
            stdout=f"abc123\trefs/heads/{name}")


@pytest.fixture
def repo(port):
    port.on(["git", "rev-parse", "--git-dir"], stdout=".git")
    on_branch(port, "main")
    remote_branch(port, "develop")
    return port


@pytest.fixture
def preparer(repo, tmp_path):
    return BranchPreparer(SyncExecutor(port=repo, workdir=tmp_path))


class TestCreate:
    def test_creates_from_updated_base(self, preparer, repo):
        on_branch(repo, "main", "feature/login")

        report = preparer.prepare("feature/login", "create")

        assert report.success
        assert report.message == 'Successfully created branch "feature/login"'
        calls = repo.calls
        assert calls.index(("git", "checkout", "develop")) < calls.index(
            ("git", "pull", "origin", "develop")
        ) < calls.index(("git", "checkout", "-b", "feature/login"))
        assert report.current_branch == "feature/login"
        assert "Created and checked out new branch: feature/login" in (
            report.steps
        )

    def test_existing_branch_is_an_error(self, preparer, repo):
        local_branch(repo, "feature/login")

        report = preparer.prepare("feature/login", "create")

        assert not report.success
        assert report.message == (
            'Failed to create branch "feature/login": '
            'Branch "feature/login" already exists locally'
        )
        assert not repo.commands_starting("git", "checkout")

    def test_base_missing_on_remote_branches_from_here(self, preparer, repo):
        report = preparer.prepare("feature/login", "create", base="trunk")

        assert report.success
        assert not repo.called("git", "checkout", "trunk")
        assert repo.called("git", "checkout", "-b", "feature/login")

    def test_push_sets_upstream_for_new_branch(self, preparer, repo):
        report = preparer.prepare(
            "feature/login", "create", push_to_remote=True
        )

        assert repo.called("git", "push", "-u", "origin", "feature/login")
        assert (
            "Pushed branch to remote and set up tracking: feature/login"
            in report.steps
        )

    def test_push_failure_is_a_warning(self, preparer, repo):
        repo.fail(["git", "push", "-u", "origin", "feature/login"],
                  "permission denied")

        report = preparer.prepare(
            "feature/login", "create", push_to_remote=True
        )

        assert report.success
        assert report.warnings == [
            "Failed to push to remote: permission denied"
        ]

    def test_dirty_tree_without_stash(self, preparer, repo):
        repo.on(STATUS, stdout="?? notes.txt")

        report = preparer.prepare("feature/login", "create")

        assert not report.success
        assert "Working directory not clean" in report.message
        assert not repo.commands_starting("git", "checkout")

    def test_dirty_tree_with_stash(self, preparer, repo):
        repo.on(STATUS, stdout="?? notes.txt")
        on_branch(repo, "main", "feature/login")

        report = preparer.prepare(
            "feature/login", "create", stash_changes=True
        )

        assert report.success
        calls = repo.calls
        assert calls.index(STASH_PUSH) < calls.index(
            ("git", "checkout", "-b", "feature/login")
        ) < calls.index(STASH_POP)
        assert "Restored previously stashed changes" in report.steps


class TestCheckout:
    @pytest.fixture
    def synced(self, repo):
        """feature tracks origin/develop cleanly once checked out."""
        on_branch(repo, "main", "feature")
        local_branch(repo, "feature")
        repo.on(["git", "rev-list", "--left-right", "--count",
                 "origin/develop...feature"], stdout="0\t0")
        return repo

    def test_local_branch_is_synced_with_base(self, preparer, synced):
        report = preparer.prepare("feature", "checkout")

        assert report.success
        assert synced.called("git", "checkout", "feature")
        assert synced.called("git", "rebase", "origin/develop")
        assert "Checked out existing local branch: feature" in report.steps
        assert "Rebased feature onto origin/develop" in report.steps
        assert report.sync.outcome is Outcome.SUCCEEDED

    def test_base_equal_to_branch_skips_sync(self, preparer, synced):
        report = preparer.prepare("feature", "checkout", base="feature")

        assert report.success
        assert report.sync is None
        assert not synced.commands_starting("git", "rebase")

    def test_remote_only_branch_gets_tracking_branch(self, preparer, repo):
        on_branch(repo, "main", "hotfix")
        remote_branch(repo, "hotfix")

        report = preparer.prepare("hotfix", "checkout", base="hotfix")

        assert report.success
        assert repo.called("git", "checkout", "-b", "hotfix", "origin/hotfix")
        assert "Created local tracking branch from remote: hotfix" in (
            report.steps
        )

    def test_unknown_branch(self, preparer, repo):
        report = preparer.prepare("ghost", "checkout")

        assert not report.success
        assert report.message == (
            'Failed to checkout branch "ghost": '
            'Branch "ghost" does not exist locally or on remote'
        )


class TestSync:
    @pytest.fixture
    def on_feature(self, repo):
        on_branch(repo, "feature")
        local_branch(repo, "feature", current=True)
        repo.on(["git", "rev-list", "--left-right", "--count",
                 "origin/develop...feature"], stdout="3\t1")
        return repo

    def test_sync_current_branch(self, preparer, on_feature):
        report = preparer.prepare("feature", "sync", sync_strategy="merge")

        assert report.success
        assert report.message == 'Successfully synced branch "feature"'
        assert on_feature.called(
            "git", "merge", "--no-ff", "origin/develop",
            "-m", "Merge origin/develop into feature",
        )
        assert not on_feature.commands_starting("git", "checkout")
        assert not on_feature.commands_starting("git", "push")

    def test_sync_conflicts_are_warnings(self, preparer, on_feature):
        on_feature.fail(["git", "rebase", "origin/develop"],
                        "CONFLICT (content): Merge conflict in app.py")
        on_feature.on(["git", "diff", "--name-only", "--diff-filter=U"],
                      stdout="app.py")

        report = preparer.prepare("feature", "sync")

        assert report.success
        assert report.conflicted_files == ["app.py"]
        assert report.sync.outcome is Outcome.AWAITING_MANUAL_RESOLUTION
        assert (
            "Rebase conflicts detected. Run 'git status' to see "
            "conflicted files." in report.warnings
        )
        assert "Rebase initiated but conflicts need manual resolution" in (
            report.steps
        )

    def test_stash_is_kept_while_conflicts_are_pending(self, preparer, repo):
        repo.on(STATUS, stdout=" M notes.txt")
        on_branch(repo, "main", "feature")
        local_branch(repo, "feature")
        repo.on(["git", "rev-list", "--left-right", "--count",
                 "origin/develop...feature"], stdout="3\t1")
        repo.fail(["git", "rebase", "origin/develop"],
                  "CONFLICT (content): Merge conflict in app.py")
        repo.on(["git", "diff", "--name-only", "--diff-filter=U"],
                stdout="app.py")

        report = preparer.prepare("feature", "sync", stash_changes=True)

        assert report.success
        assert repo.called(*STASH_PUSH)
        assert not repo.called(*STASH_POP)
        assert report.warnings[-1] == (
            "Uncommitted changes remain stashed; run `git stash pop` "
            "once the conflicts are resolved"
        )

    def test_failed_sync_is_a_warning(self, preparer, on_feature):
        on_feature.fail(["git", "rebase", "origin/develop"],
                        "fatal: invalid upstream")

        report = preparer.prepare("feature", "sync")

        assert report.success
        assert report.warnings[-1].startswith("Sync with develop failed:")

    def test_switches_to_requested_branch(self, preparer, repo):
        on_branch(repo, "main", "release")
        local_branch(repo, "release")

        report = preparer.prepare("release", "sync")

        assert repo.called("git", "checkout", "release")
        assert "Checked out branch: release" in report.steps

    def test_branch_must_exist_locally(self, preparer, repo):
        report = preparer.prepare("release", "sync")

        assert not report.success
        assert 'Branch "release" does not exist locally' in report.message


def test_fetch_failure_is_a_warning(preparer, repo):
    repo.fail(["git", "fetch", "origin"], "could not resolve host")

    report = preparer.prepare("feature/login", "create")

    assert report.success
    assert report.warnings == [
        "Failed to fetch from remote: could not resolve host"
    ]


def test_not_a_repository(port, tmp_path):
    port.fail(["git", "rev-parse", "--git-dir"], "fatal: not a git repository")
    preparer = BranchPreparer(SyncExecutor(port=port, workdir=tmp_path))

    report = preparer.prepare("feature", "sync")

    assert not report.success
    assert report.message.endswith("Not in a git repository")


def test_unknown_action_runs_nothing(preparer, repo):
    report = preparer.prepare("feature", "rename")

    assert not report.success
    assert "rename" in report.message
    assert repo.calls == []
