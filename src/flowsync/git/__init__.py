"""Git access: argument builders, command port and state queries."""

from flowsync.git.inspector import RepositoryInspector
from flowsync.git.port import CommandPort, InvokeCommandPort

__all__ = ["CommandPort", "InvokeCommandPort", "RepositoryInspector"]
