"""Parse git conflict markers into structured data."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from flowsync.core.log import logger

START_MARKER = "<<<<<<<"
SEPARATOR = "======="
END_MARKER = ">>>>>>>"


@dataclass(frozen=True)
class ConflictBlock:
    """One <<<<<<< / ======= / >>>>>>> region of a file.

    Line numbers are 0-based indexes of the marker lines in the content
    the block was parsed from, start_line < end_line.
    """

    start_line: int
    end_line: int
    ours_text: str
    theirs_text: str
    ours_ref: str = ""
    theirs_ref: str = ""


@dataclass
class FileConflictAnalysis:
    file_path: str
    blocks: list[ConflictBlock] = field(default_factory=list)

    @property
    def total_conflicts(self) -> int:
        return len(self.blocks)


def _find(lines: list[str], marker: str, start: int) -> int | None:
    for j in range(start, len(lines)):
        if lines[j].startswith(marker):
            return j
    return None


def parse(content: str) -> list[ConflictBlock]:
    """Find every well-formed conflict block in content.

    A start marker without a later separator and end marker is skipped,
    and scanning resumes on the next line. A diff3 base section
    (|||||||) stays in ours_text. CRLF line endings are dropped from the
    block texts.

    Returns:
        Blocks in document order
    """
    lines = [line.removesuffix("\r") for line in content.split("\n")]
    blocks = []
    i = 0

    while i < len(lines):
        if not lines[i].startswith(START_MARKER):
            i += 1
            continue

        separator = _find(lines, SEPARATOR, i + 1)
        end = (
            _find(lines, END_MARKER, separator + 1)
            if separator is not None else None
        )
        if separator is None or end is None:
            i += 1
            continue

        blocks.append(ConflictBlock(
            start_line=i,
            end_line=end,
            ours_text="\n".join(lines[i + 1:separator]),
            theirs_text="\n".join(lines[separator + 1:end]),
            ours_ref=lines[i][len(START_MARKER):].strip(),
            theirs_ref=lines[end][len(END_MARKER):].strip(),
        ))
        i = end + 1

    return blocks


def analyze_file(path: str | Path) -> FileConflictAnalysis:
    """Parse the conflict blocks of a file on disk.

    An unreadable file yields an empty analysis.
    """
    try:
        with open(path, encoding="utf-8", newline="") as f:
            content = f.read()
    except (OSError, UnicodeDecodeError) as e:
        logger.warn("Could not read file for conflict analysis",
                    file=str(path), error=str(e))
        return FileConflictAnalysis(file_path=str(path))
    return FileConflictAnalysis(file_path=str(path), blocks=parse(content))
