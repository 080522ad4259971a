"""Command execution using the invoke library."""

import contextlib
import os
from pathlib import Path

from invoke import Context, Result
from invoke.exceptions import CommandTimedOut

from flowsync.core.log import logger


class Runner(Context):
    """invoke.Context with a single configurable execute() entry point."""

    def kill(self) -> None:
        """Kill the running subprocess.

        invoke's own kill() sends signal.SIGKILL, which does not exist on
        Windows. There os.kill() accepts a numeric code and forwards it to
        TerminateProcess(), so 9 is passed directly.
        """
        import platform

        if platform.system() == "Windows":
            pid = self.pid if self.using_pty else self.process.pid
            with contextlib.suppress(ProcessLookupError):
                os.kill(pid, 9)
            return

        super().kill()

    def execute(
        self,
        command: str,
        cwd: Path | None = None,
        timeout: int | None = None,
        check: bool = True,
        env: dict[str, str] | None = None,
    ) -> Result:
        """Execute a shell command and capture its output.

        Args:
            command: Command string, already quoted by the caller
            cwd: Working directory for the command
            timeout: Maximum execution time in seconds
            check: If True, raise on non-zero exit code
            env: Variables layered over os.environ

        Returns:
            invoke.Result with stdout, stderr and exited. A timed out
            command yields its partial result with exited == -1.

        Raises:
            invoke.UnexpectedExit: If check=True and the command
                returns non-zero
        """
        kwargs = {
            "hide": True,
            "warn": not check,
            "in_stream": False,
        }
        if timeout:
            kwargs["timeout"] = timeout
        if env:
            kwargs["env"] = env

        try:
            if cwd:
                with self.cd(str(cwd)):
                    result = self.run(command, **kwargs)
            else:
                result = self.run(command, **kwargs)
        except CommandTimedOut as e:
            result = e.result
            result.exited = -1

        for line in result.stderr.splitlines():
            logger.spew(line.rstrip(), stream="stderr")

        return result
