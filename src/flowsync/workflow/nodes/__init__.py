"""Nodes of the sync state machine."""

from flowsync.workflow.nodes.finalize import Finalize
from flowsync.workflow.nodes.resolve_conflicts import ResolveConflicts
from flowsync.workflow.nodes.synchronize import Synchronize
from flowsync.workflow.nodes.validate import Validate

__all__ = [
    "Validate",
    "Synchronize",
    "ResolveConflicts",
    "Finalize",
]
