"""Conflict marker parsing, resolution and the workbench actions."""

from flowsync.conflict.parser import (
    ConflictBlock,
    FileConflictAnalysis,
    analyze_file,
    parse,
)
from flowsync.conflict.resolver import ConflictResolver, ResolutionOutcome

__all__ = [
    "ConflictBlock",
    "ConflictResolver",
    "FileConflictAnalysis",
    "ResolutionOutcome",
    "analyze_file",
    "parse",
]
