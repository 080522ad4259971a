"""Apply classifications to conflicted files."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

from flowsync.conflict.parser import (
    ConflictBlock,
    FileConflictAnalysis,
    analyze_file,
)
from flowsync.core.config import ResolveConfig
from flowsync.core.log import logger
from flowsync.core.types import AutoResolveStrategy
from flowsync.git import commands
from flowsync.git.port import CommandPort
from flowsync.rules import Classifier


@dataclass
class ResolutionOutcome:
    """What happened to one file.

    descriptions holds one entry per resolved block in document order,
    or a single entry explaining why nothing was resolved.
    """

    file_path: str
    resolved_block_count: int = 0
    total_blocks: int = 0
    descriptions: list[str] = field(default_factory=list)
    preview: bool = False

    @property
    def fully_resolved(self) -> bool:
        return (
            self.total_blocks > 0
            and self.resolved_block_count == self.total_blocks
        )


def splice(lines: list[str], block: ConflictBlock, resolution: str) -> None:
    """Replace a block's marker span in place.

    The replacement lines take the start marker's line ending.
    """
    eol = "\r" if lines[block.start_line].endswith("\r") else ""
    replacement = (
        [line + eol for line in resolution.split("\n")] if resolution else []
    )
    lines[block.start_line:block.end_line + 1] = replacement


class ConflictResolver:
    """Resolves conflicted files with the rule chain or a whole side.

    Paths are relative to workdir (the repository root) when one is
    given, as git reports them.
    """

    def __init__(
        self,
        port: CommandPort,
        config: ResolveConfig | None = None,
        workdir: Path | str | None = None,
        classifier: Classifier | None = None,
    ):
        self.port = port
        self.config = config or ResolveConfig()
        self.workdir = Path(workdir) if workdir else None
        self.classifier = classifier or Classifier(self.config)

    def path_on_disk(self, path: str) -> Path:
        if self.workdir is None:
            return Path(path)
        return self.workdir / path

    def analyze(self, path: str) -> FileConflictAnalysis:
        analysis = analyze_file(self.path_on_disk(path))
        analysis.file_path = path
        return analysis

    def resolve_file(
        self,
        path: str,
        blocks: Sequence[ConflictBlock],
        preview: bool = False,
    ) -> ResolutionOutcome:
        """Classify every block and splice the automatic resolutions.

        Splicing runs from the last block to the first so earlier line
        numbers stay valid. The file is rewritten only when not
        previewing and at least one block was resolved.
        """
        outcome = ResolutionOutcome(
            file_path=path, total_blocks=len(blocks), preview=preview
        )
        disk_path = self.path_on_disk(path)

        try:
            with open(disk_path, encoding="utf-8", newline="") as f:
                lines = f.read().split("\n")
        except (OSError, UnicodeDecodeError) as e:
            outcome.descriptions.append(f"Error processing {path}: {e}")
            return outcome

        applied = []
        for block in sorted(blocks, key=lambda b: b.start_line, reverse=True):
            classification = self.classifier.classify(
                block.ours_text, block.theirs_text
            )
            if classification.is_manual:
                continue
            if not preview:
                splice(lines, block, classification.resolution)
            applied.append((block.start_line, classification.category))

        outcome.resolved_block_count = len(applied)
        verb = "would apply " if preview else ""
        outcome.descriptions = [
            f"Line {start + 1}: {verb}{category}"
            for start, category in sorted(applied)
        ]
        if not applied:
            outcome.descriptions.append("No conflicts could be auto-resolved")

        if applied and not preview:
            try:
                with open(disk_path, "w", encoding="utf-8", newline="") as f:
                    f.write("\n".join(lines))
            except OSError as e:
                outcome.resolved_block_count = 0
                outcome.descriptions = [f"Error processing {path}: {e}"]
                return outcome
            logger.debug("Rewrote conflicted file", file=path,
                         resolved=len(applied), total=len(blocks))

        return outcome

    def take_side(
        self, path: str, side: str, preview: bool = False
    ) -> ResolutionOutcome:
        """Resolve the whole file with `git checkout --ours|--theirs`."""
        outcome = ResolutionOutcome(file_path=path, preview=preview)
        if preview:
            outcome.total_blocks = outcome.resolved_block_count = 1
            outcome.descriptions.append(f"Would take '{side}' for whole file")
            return outcome

        result = self.port.execute(commands.checkout_side(side, path))
        if result.success:
            outcome.total_blocks = outcome.resolved_block_count = 1
            outcome.descriptions.append(f"Took '{side}' for whole file")
        else:
            outcome.descriptions.append(
                f"Failed to take '{side}': {result.error_text}"
            )
        return outcome

    def resolve_conflicted_file(
        self,
        path: str,
        strategy: AutoResolveStrategy,
        preview: bool = False,
    ) -> ResolutionOutcome:
        """Resolve one unmerged file with an auto-resolve strategy.

        For ours/theirs the outcome is fully_resolved iff the checkout
        succeeded; for smart iff no block is left needing a human.
        """
        strategy = AutoResolveStrategy.parse(strategy)
        if strategy in (AutoResolveStrategy.OURS, AutoResolveStrategy.THEIRS):
            return self.take_side(path, strategy.value, preview)
        if strategy is AutoResolveStrategy.NONE:
            return ResolutionOutcome(
                file_path=path,
                descriptions=["Auto-resolve disabled"],
                preview=preview,
            )

        analysis = self.analyze(path)
        if not analysis.blocks:
            return ResolutionOutcome(
                file_path=path,
                descriptions=["No conflict markers found"],
                preview=preview,
            )
        return self.resolve_file(path, analysis.blocks, preview)

    def stage(self, path: str) -> bool:
        result = self.port.execute(commands.add(path))
        if not result.success:
            logger.warn("Failed to stage file", file=path,
                        error=result.error_text)
        return result.success
