"""Command port: the only place the engine starts subprocesses."""

from __future__ import annotations

import shlex
from collections.abc import Sequence
from pathlib import Path
from typing import Protocol, runtime_checkable

from flowsync.core.log import logger
from flowsync.core.result import CommandResult
from flowsync.core.runner import Runner

# Continuations must never wait on an editor or a credential prompt
GIT_ENV = {
    "GIT_EDITOR": "true",
    "GIT_TERMINAL_PROMPT": "0",
}


@runtime_checkable
class CommandPort(Protocol):
    """Runs one command given as an argument array."""

    def execute(self, args: Sequence[str]) -> CommandResult:
        ...


def error_text_for(stderr: str, exit_code: int, exc: Exception | None = None):
    """Pick the most useful failure description available."""
    text = (stderr or "").strip()
    if text:
        return text
    if exc is not None and str(exc):
        return str(exc)
    return f"exit code {exit_code}"


class InvokeCommandPort:
    """CommandPort backed by invoke.

    Never raises: a nonzero exit, a missing binary and a timeout all
    come back as CommandResult(success=False).
    """

    def __init__(
        self,
        workdir: Path | str | None = None,
        timeout: int | None = None,
        runner: Runner | None = None,
    ):
        self.workdir = Path(workdir) if workdir else None
        self.timeout = timeout
        self.runner = runner or Runner()

    def execute(self, args: Sequence[str]) -> CommandResult:
        args = [str(a) for a in args]
        command = shlex.join(args)

        try:
            result = self.runner.execute(
                command,
                cwd=self.workdir,
                timeout=self.timeout,
                check=False,
                env=GIT_ENV,
            )
        except Exception as e:  # invoke raises for spawn failures
            logger.debug("Command could not start", command=command,
                         error=str(e))
            return CommandResult(
                args=args,
                success=False,
                error_text=error_text_for("", -1, e),
                exit_code=-1,
            )

        exit_code = result.exited
        success = exit_code == 0
        logger.debug("Command finished", command=command,
                     exit_code=exit_code)

        return CommandResult(
            args=args,
            stdout=result.stdout.strip(),
            success=success,
            error_text=None if success else error_text_for(
                result.stderr, exit_code
            ),
            exit_code=exit_code,
        )
