"""Plain-text rendering of engine reports."""

from __future__ import annotations

from flowsync.core.result import (
    BranchReport,
    Outcome,
    SyncReport,
    WorkbenchReport,
)


def _section(title: str, items: list[str], bullet: str = "-") -> list[str]:
    if not items:
        return []
    return ["", f"{title}:"] + [f"  {bullet} {item}" for item in items]


def _headline(success: bool, message: str) -> str:
    return f"{'OK' if success else 'FAILED'}: {message}"


def render_sync(report: SyncReport) -> str:
    if report.outcome is Outcome.AWAITING_MANUAL_RESOLUTION:
        lines = [f"CONFLICTS: {report.message}"]
    else:
        lines = [_headline(report.success, report.message)]

    if report.failure:
        lines.append(f"Failure: {report.failure}")
    if report.current_branch:
        lines.append(f"Current branch: {report.current_branch}")
    if report.strategy:
        lines.append(f"Strategy used: {report.strategy}")
    if report.after is not None:
        lines.append(f"Commits ahead/behind: {report.after.describe()}")

    if report.outcome is Outcome.AWAITING_MANUAL_RESOLUTION:
        resume = (
            "git rebase --continue" if report.strategy == "rebase"
            else "git commit"
        )
        lines += _section("Conflicted files", report.conflicted_files)
        lines += _section("Next steps", [
            "Resolve conflicts in the listed files",
            "Run `git add <resolved-files>`",
            f"Run `{resume}`",
        ])
    elif report.outcome is Outcome.FAILED:
        lines += _section("Conflicted files", report.conflicted_files)

    title = "Steps performed" if report.success else "Steps completed"
    lines += _section(title, report.steps)
    lines += _section("Warnings", report.warnings, bullet="!")
    lines += _section("Resolved conflicts", report.resolved_files)
    return "\n".join(lines)


def render_branch(report: BranchReport) -> str:
    lines = [_headline(report.success, report.message)]
    if report.current_branch:
        lines.append(f"Current branch: {report.current_branch}")
    title = "Steps performed" if report.success else "Steps completed"
    lines += _section(title, report.steps)
    lines += _section("Warnings", report.warnings, bullet="!")
    lines += _section("Conflicted files", report.conflicted_files)
    return "\n".join(lines)


def render_workbench(report: WorkbenchReport) -> str:
    lines = [_headline(report.success, report.message)]
    if report.action in ("status", "analyze", "manual-assist"):
        lines.append(f"Operation: {report.operation}")

    for file in report.files:
        header = f"{file.path}: {file.total_conflicts} conflict blocks"
        if report.action == "auto-resolve":
            header = (
                f"{file.path}: {file.resolved} of {file.total_conflicts} "
                "resolved"
            )
        lines += ["", header] + [f"    {d}" for d in file.details]

    if report.continuation_command:
        label = (
            "Continuation" if report.action == "auto-resolve"
            else "After resolving all conflicts"
        )
        lines += ["", f"{label}: {report.continuation_command}"]
    lines += _section("Steps performed", report.steps)
    lines += _section("Warnings", report.warnings, bullet="!")
    return "\n".join(lines)


def render(report: SyncReport | BranchReport | WorkbenchReport) -> str:
    if isinstance(report, SyncReport):
        return render_sync(report)
    if isinstance(report, BranchReport):
        return render_branch(report)
    return render_workbench(report)
