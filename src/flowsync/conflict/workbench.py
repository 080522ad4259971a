"""Conflict workbench: inspect, resolve or abort a suspended operation.

Each action returns a WorkbenchReport; none of them starts a merge or
rebase of its own.
"""

from __future__ import annotations

from collections.abc import Sequence

from flowsync.conflict.parser import ConflictBlock
from flowsync.conflict.resolver import ConflictResolver
from flowsync.core.config import ResolveConfig
from flowsync.core.errors import UnknownStrategyError
from flowsync.core.log import logger
from flowsync.core.result import FileReport, WorkbenchReport
from flowsync.core.types import AutoResolveStrategy, OperationState
from flowsync.git import commands
from flowsync.git.inspector import RepositoryInspector
from flowsync.git.port import CommandPort
from flowsync.rules import MANUAL

BACKUP_MESSAGE = "Backup before conflict resolution"

SUGGESTIONS = {
    "theirs (ours empty)": "Keep theirs (ours is empty)",
    "ours (theirs empty)": "Keep ours (theirs is empty)",
    "ours (includes theirs)": "Keep ours (it already includes theirs)",
    "theirs (includes ours)": "Keep theirs (it already includes ours)",
    "merged imports": "Merge import statements",
    "combined additions": "Keep both additions",
    "theirs (version update)": "Take theirs (version update)",
    MANUAL: "Review both versions carefully",
}

_OPERATION_LABEL = {
    OperationState.MERGE: "merge",
    OperationState.REBASE: "rebase",
    OperationState.CHERRY_PICK: "cherry-pick",
}

_AUTO_STRATEGIES = [
    AutoResolveStrategy.OURS.value,
    AutoResolveStrategy.THEIRS.value,
    AutoResolveStrategy.SMART.value,
]


def parse_auto_strategy(value) -> AutoResolveStrategy:
    """ours, theirs or smart; "none" is not an auto-resolve action."""
    try:
        strategy = AutoResolveStrategy.parse(value)
    except UnknownStrategyError:
        strategy = None
    if strategy is None or strategy is AutoResolveStrategy.NONE:
        raise UnknownStrategyError("auto-resolve", value, _AUTO_STRATEGIES)
    return strategy


class ConflictWorkbench:
    def __init__(
        self,
        port: CommandPort,
        inspector: RepositoryInspector | None = None,
        resolver: ConflictResolver | None = None,
        config: ResolveConfig | None = None,
    ):
        self.port = port
        self.config = config or ResolveConfig()
        self.inspector = inspector or RepositoryInspector(port)
        self.resolver = resolver or ConflictResolver(port, self.config)

    def _not_a_repository(self, action: str) -> WorkbenchReport | None:
        if self.inspector.is_repository():
            return None
        return WorkbenchReport(
            action=action,
            success=False,
            message=f"Failed to {action} conflicts: Not in a git repository",
        )

    def _targets(self, files: Sequence[str] | None) -> list[str]:
        return list(files) if files else self.inspector.conflicted_files()

    def _describe_blocks(
        self, blocks: list[ConflictBlock], describe
    ) -> list[str]:
        shown = self.config.analysis_preview_blocks
        details = [
            f"Lines {b.start_line + 1}-{b.end_line + 1}: {describe(b)}"
            for b in blocks[:shown]
        ]
        if len(blocks) > shown:
            details.append(f"... and {len(blocks) - shown} more conflicts")
        return details

    def _category(self, block: ConflictBlock) -> str:
        return self.resolver.classifier.classify(
            block.ours_text, block.theirs_text
        ).category

    def status(self) -> WorkbenchReport:
        """Suspended operation and the unmerged files with block counts."""
        if failed := self._not_a_repository("status"):
            return failed

        operation = self.inspector.operation_state()
        files = [
            FileReport(
                path=path,
                total_conflicts=self.resolver.analyze(path).total_conflicts,
            )
            for path in self.inspector.conflicted_files()
        ]
        if operation is OperationState.NONE:
            state = "No active merge/rebase operation"
        else:
            state = f"Currently in {_OPERATION_LABEL[operation]} operation"
        message = state if files else f"{state}; no conflicts found"

        return WorkbenchReport(
            action="status",
            success=True,
            message=message,
            operation=operation,
            files=files,
            steps=["Analyzed current conflict state"],
        )

    def analyze(self, files: Sequence[str] | None = None) -> WorkbenchReport:
        """Classify the blocks of each file without changing anything."""
        if failed := self._not_a_repository("analyze"):
            return failed

        targets = self._targets(files)
        if not targets:
            return WorkbenchReport(
                action="analyze",
                success=True,
                message="No conflicted files found to analyze",
            )

        steps = [f"Analyzing {len(targets)} conflicted files"]
        reports = []
        for path in targets:
            analysis = self.resolver.analyze(path)
            reports.append(FileReport(
                path=path,
                total_conflicts=analysis.total_conflicts,
                details=self._describe_blocks(
                    analysis.blocks, self._category
                ),
            ))

        total = sum(r.total_conflicts for r in reports)
        summary = f"{total} total conflicts in {len(targets)} files"
        steps.append(
            f"Found {total} conflicts across {len(targets)} files"
        )
        return WorkbenchReport(
            action="analyze",
            success=True,
            message=summary,
            operation=self.inspector.operation_state(),
            files=reports,
            steps=steps,
        )

    def auto_resolve(
        self,
        strategy: AutoResolveStrategy | str = AutoResolveStrategy.SMART,
        files: Sequence[str] | None = None,
        backup: bool = True,
        continue_operation: bool = True,
        preview: bool = False,
    ) -> WorkbenchReport:
        """Resolve, stage and (when everything resolved) continue.

        Raises:
            UnknownStrategyError: If strategy is not ours, theirs or smart
        """
        strategy = parse_auto_strategy(strategy)
        if failed := self._not_a_repository("auto-resolve"):
            return failed

        targets = self._targets(files)
        if not targets:
            return WorkbenchReport(
                action="auto-resolve",
                success=True,
                message="No conflicted files found to resolve",
            )

        steps = [
            f"Auto-resolving {len(targets)} files using "
            f"'{strategy}' strategy"
        ]
        warnings = []
        if preview:
            steps.append("PREVIEW MODE - No changes will be made")
        elif backup:
            self._backup(steps, warnings)

        reports = []
        resolved = 0
        for path in targets:
            outcome = self.resolver.resolve_conflicted_file(
                path, strategy, preview=preview
            )
            reports.append(FileReport(
                path=path,
                total_conflicts=outcome.total_blocks,
                resolved=outcome.resolved_block_count,
                details=outcome.descriptions,
            ))
            if not outcome.fully_resolved:
                warnings.append(
                    f"Failed to resolve {path}: "
                    + ", ".join(outcome.descriptions)
                )
                continue
            if preview:
                resolved += 1
                steps.append(f"Would resolve {path}")
            elif self.resolver.stage(path):
                resolved += 1
                steps.append(f"Resolved and staged {path}")
            else:
                warnings.append(f"Resolved {path} but failed to stage")

        operation = self.inspector.operation_state()
        continuation = None
        if continue_operation and not preview and resolved == len(targets):
            continuation = self._continue(operation, steps, warnings)

        prefix = "PREVIEW: would auto-resolve" if preview else "Auto-resolved"
        for warning in warnings:
            logger.warn(warning)
        return WorkbenchReport(
            action="auto-resolve",
            success=True,
            message=(
                f"{prefix} {resolved} of {len(targets)} files using "
                f"'{strategy}' strategy"
            ),
            operation=operation,
            files=reports,
            steps=steps,
            warnings=warnings,
            continuation_command=continuation,
        )

    def _backup(self, steps: list[str], warnings: list[str]) -> None:
        """Record the working tree in the stash list without touching it."""
        created = self.port.execute(commands.stash_create())
        if not created.success:
            warnings.append(f"Failed to create backup: {created.error_text}")
            return
        sha = created.stdout.strip()
        if not sha:
            steps.append("No local changes to back up")
            return
        stored = self.port.execute(commands.stash_store(sha, BACKUP_MESSAGE))
        if stored.success:
            steps.append(f"Created backup of current changes ({sha[:8]})")
        else:
            warnings.append(f"Failed to create backup: {stored.error_text}")

    def _continue(
        self,
        operation: OperationState,
        steps: list[str],
        warnings: list[str],
    ) -> str | None:
        args = commands.continue_operation(operation)
        if args is None:
            return None
        label = _OPERATION_LABEL[operation]
        result = self.port.execute(args)
        if result.success:
            steps.append(f"Continued {label} operation")
        else:
            warnings.append(f"Failed to continue {label}: {result.error_text}")
        return " ".join(args)

    def manual_assist(
        self, files: Sequence[str] | None = None
    ) -> WorkbenchReport:
        """Where each conflict is and what the rule chain suggests."""
        if failed := self._not_a_repository("manual-assist"):
            return failed

        targets = self._targets(files)
        if not targets:
            return WorkbenchReport(
                action="manual-assist",
                success=True,
                message="No conflicted files found",
            )

        def suggest(block: ConflictBlock) -> str:
            return "Suggestion: " + SUGGESTIONS.get(
                self._category(block), SUGGESTIONS[MANUAL]
            )

        reports = []
        for path in targets:
            analysis = self.resolver.analyze(path)
            reports.append(FileReport(
                path=path,
                total_conflicts=analysis.total_conflicts,
                details=self._describe_blocks(analysis.blocks, suggest),
            ))

        operation = self.inspector.operation_state()
        args = commands.continue_operation(operation)
        return WorkbenchReport(
            action="manual-assist",
            success=True,
            message=(
                f"Manual resolution assistance for {len(targets)} files; "
                "stage each file with `git add` once resolved"
            ),
            operation=operation,
            files=reports,
            steps=[
                "Providing manual resolution assistance for "
                f"{len(targets)} files"
            ],
            continuation_command=" ".join(args) if args else None,
        )

    def abort(self) -> WorkbenchReport:
        """Abort the suspended operation; nothing suspended is a no-op."""
        if failed := self._not_a_repository("abort"):
            return failed

        operation = self.inspector.operation_state()
        args = commands.abort_operation(operation)
        if args is None:
            return WorkbenchReport(
                action="abort",
                success=True,
                message="No active merge/rebase/cherry-pick operation to abort",
            )

        steps = ["Aborting current operation"]
        result = self.port.execute(args)
        if not result.success:
            logger.error("Abort failed", operation=operation.value,
                         error=result.error_text)
            return WorkbenchReport(
                action="abort",
                success=False,
                message=f"Failed to abort operation: {result.error_text}",
                operation=operation,
                steps=steps,
            )

        steps.append("Successfully aborted operation")
        return WorkbenchReport(
            action="abort",
            success=True,
            message=(
                "Operation aborted; repository restored to the state "
                "before the operation"
            ),
            operation=operation,
            steps=steps,
        )
