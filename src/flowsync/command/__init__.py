"""CLI command modules for flowsync."""

from flowsync.command.prepare import PrepareCommand
from flowsync.command.resolve import ResolveCommand
from flowsync.command.sync import SyncCommand

__all__ = ["PrepareCommand", "ResolveCommand", "SyncCommand"]
