"""Graph workflow definition."""

from pydantic_graph import Graph

from flowsync.core.log import logger
from flowsync.workflow.state import SyncRun


def create_workflow():
    """Create the sync workflow graph.

    Validate -> Synchronize -> Finalize
                            -> ResolveConflicts -> Finalize
                                                -> End (awaiting manual)
    Fatal conditions are raised as FlowsyncError from any node.

    Returns:
        Graph with SyncRun as state_type
    """
    logger.debug("Building sync workflow graph")

    # Node modules refer to each other; Graph resolves the return
    # hints from these locals
    from flowsync.workflow.nodes.finalize import Finalize
    from flowsync.workflow.nodes.resolve_conflicts import ResolveConflicts
    from flowsync.workflow.nodes.synchronize import Synchronize
    from flowsync.workflow.nodes.validate import Validate

    return Graph(
        nodes=(
            Validate,
            Synchronize,
            ResolveConflicts,
            Finalize,
        ),
        state_type=SyncRun,
    )
