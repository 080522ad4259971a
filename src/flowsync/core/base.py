"""Pydantic base models shared by configuration, logging and run state.

Closing a model closes every field that has a close() method, so one
close() on Config reaches the Logger and its file sink.
"""

from __future__ import annotations

import sys
from collections.abc import Iterator
from typing import Protocol, runtime_checkable

from pydantic import BaseModel


@runtime_checkable
class Closeable(Protocol):
    def close(self) -> None: ...


class BaseCloseable(BaseModel):
    """Model whose close() cascades to its Closeable fields.

    Also a context manager that closes on exit, exception or not.
    """

    def _closeable_fields(self) -> Iterator[tuple[str, Closeable]]:
        for name in type(self).model_fields:
            value = getattr(self, name, None)
            if isinstance(value, Closeable):
                yield name, value

    def close(self):
        for name, child in self._closeable_fields():
            try:
                child.close()
            except Exception as e:
                # Keep closing the remaining fields
                print(f"flowsync: failed to close {name}: {e}",
                      file=sys.stderr)

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()
        return False


class BaseConfig(BaseCloseable):
    """A configuration section (YAML, environment or command line)."""


class BaseState(BaseCloseable):
    """State that changes while one command runs."""


__all__ = ["BaseCloseable", "BaseConfig", "BaseState", "Closeable"]
