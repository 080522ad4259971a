"""Pytest configuration and fixtures for flowsync tests."""

import tempfile
from collections.abc import Sequence
from pathlib import Path

import pytest

from flowsync.core.log import ConsoleSink, setup_logger
from flowsync.core.result import CommandResult


@pytest.fixture(autouse=True, scope="session")
def configure_logging():
    """Console-only logging for the whole test session."""
    test_log_root = Path(tempfile.gettempdir()) / "flowsync-tests"
    setup_logger(
        log_root=test_log_root,
        run_name="test",
        console=ConsoleSink(level="debug"),
    )


class FakePort:
    """Scripted CommandPort.

    Responses are keyed by the full argument tuple. A key may be
    scripted with a list of results, consumed one call at a time (the
    last one repeats). Unscripted commands succeed with empty output.
    Every call is recorded in `calls`.
    """

    def __init__(self):
        self.calls: list[tuple[str, ...]] = []
        self.responses: dict[tuple[str, ...], list[CommandResult]] = {}

    def on(
        self,
        args: Sequence[str],
        stdout: str = "",
        success: bool = True,
        error: str | None = None,
    ) -> "FakePort":
        key = tuple(args)
        result = CommandResult(
            args=list(args),
            stdout=stdout,
            success=success,
            error_text=None if success else (error or "exit code 1"),
            exit_code=0 if success else 1,
        )
        self.responses.setdefault(key, []).append(result)
        return self

    def fail(self, args: Sequence[str], error: str = "") -> "FakePort":
        return self.on(args, success=False, error=error or "exit code 1")

    def execute(self, args: Sequence[str]) -> CommandResult:
        key = tuple(args)
        self.calls.append(key)
        queue = self.responses.get(key)
        if not queue:
            return CommandResult(args=list(args))
        if len(queue) > 1:
            return queue.pop(0)
        return queue[0]

    def called(self, *args: str) -> bool:
        return tuple(args) in self.calls

    def commands_starting(self, *prefix: str) -> list[tuple[str, ...]]:
        return [c for c in self.calls if c[:len(prefix)] == prefix]


@pytest.fixture
def port():
    return FakePort()
