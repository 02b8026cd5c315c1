from __future__ import annotations

from collections.abc import Generator
from typing import Any, Optional

import pytest

from sqlbind.core.cache import clear_default_cache
from sqlbind.core.config import StatementOptions
from sqlbind.core.types import ParameterDescriptor


class RecordingHandle:
    """Statement handle that records every positional bind."""

    def __init__(self, fail_at: "Optional[int]" = None, error: "Optional[Exception]" = None) -> None:
        self.calls: list[tuple[int, ParameterDescriptor, Any]] = []
        self.closed = False
        self.fail_at = fail_at
        self.error = error or ValueError("unsupported value")

    def set_positional_value(self, index: int, descriptor: ParameterDescriptor, value: Any) -> None:
        if index == self.fail_at:
            raise self.error
        self.calls.append((index, descriptor, value))

    def close(self) -> None:
        self.closed = True

    @property
    def values(self) -> list[Any]:
        return [value for _, _, value in self.calls]


class RecordingConnection:
    """Connection that hands out recording handles."""

    def __init__(self, fail_at: "Optional[int]" = None) -> None:
        self.prepared: list[tuple[str, StatementOptions]] = []
        self.handles: list[RecordingHandle] = []
        self.fail_at = fail_at

    def prepare(self, sql: str, options: StatementOptions) -> RecordingHandle:
        self.prepared.append((sql, options))
        handle = RecordingHandle(fail_at=self.fail_at)
        self.handles.append(handle)
        return handle


class Disposable:
    """A large-object stand-in counting its cleanup calls."""

    def __init__(self, name: str = "lob", fail: bool = False) -> None:
        self.name = name
        self.cleanups = 0
        self.fail = fail

    def cleanup(self) -> None:
        self.cleanups += 1
        if self.fail:
            msg = f"cannot release {self.name}"
            raise RuntimeError(msg)

    def __repr__(self) -> str:
        return f"Disposable({self.name!r})"


@pytest.fixture
def handle() -> RecordingHandle:
    return RecordingHandle()


@pytest.fixture
def connection() -> RecordingConnection:
    return RecordingConnection()


@pytest.fixture(autouse=True)
def _reset_default_cache() -> Generator[None, None, None]:
    clear_default_cache()
    yield
    clear_default_cache()
