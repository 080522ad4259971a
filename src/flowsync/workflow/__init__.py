"""Branch synchronization state machine and branch preparation."""

from flowsync.workflow.executor import SyncExecutor
from flowsync.workflow.state import SyncRequest, SyncRun

__all__ = ["SyncExecutor", "SyncRequest", "SyncRun"]
