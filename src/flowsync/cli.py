#!/usr/bin/env python3
"""flowsync CLI - branch sync and conflict resolution for git."""

import asyncio
import sys

from pydantic_settings import CliApp, CliSubCommand, get_subcommand

from flowsync.command.prepare import PrepareCommand
from flowsync.command.resolve import ResolveCommand
from flowsync.command.sync import SyncCommand
from flowsync.core.config import State
from flowsync.core.log import logger


class CliState(State):
    """Keep git branches in sync and resolve the conflicts that result.

    Configuration sources (in priority order):
    1. Command-line arguments (--config.git.remote upstream)
    2. Environment variables (FLOWSYNC_CONFIG__GIT__REMOTE=upstream)
    3. .env file
    4. YAML: --include files, ./flowsync.yaml, the user config dir,
       package defaults
    """

    sync: CliSubCommand[SyncCommand]
    prepare: CliSubCommand[PrepareCommand]
    resolve: CliSubCommand[ResolveCommand]

    def cli_cmd(self):
        """Dispatch to the chosen subcommand, or show help."""
        subcommand = get_subcommand(self, is_required=False)

        if subcommand is None:
            CliApp.run(CliState, cli_args=['--help'])
            sys.exit(1)

        # Closing the logger flushes the run log
        with logger:
            exit_code = asyncio.run(subcommand.run_workflow(self))
        raise SystemExit(exit_code)


def main():
    """Main entry point for CLI."""
    CliApp.run(CliState)


if __name__ == "__main__":
    main()
