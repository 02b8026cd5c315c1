"""Runtime-checkable protocols for the collaborators sqlbind consumes.

Only the methods the binding engine actually calls are declared, so any
mapping wrapper, record adapter or driver statement can take part without
inheriting from a sqlbind class.
"""

from typing import TYPE_CHECKING, Any, Optional, Protocol, runtime_checkable

if TYPE_CHECKING:
    from sqlbind.core.config import StatementOptions
    from sqlbind.core.types import ParameterDescriptor, SqlTypeCode

__all__ = ("ConnectionProtocol", "DisposableValue", "StatementHandleProtocol", "ValueSourceProtocol")


@runtime_checkable
class ValueSourceProtocol(Protocol):
    """Resolves parameter names to values and optional type metadata."""

    def has_value(self, name: str) -> bool:
        """Return True if a value is registered under ``name``."""
        ...

    def get_value(self, name: str) -> Any:
        """Return the value registered under ``name``."""
        ...

    def get_sql_type(self, name: str) -> "Optional[SqlTypeCode]":
        """Return the type code registered for ``name``, if any."""
        ...

    def get_type_name(self, name: str) -> Optional[str]:
        """Return the vendor type name registered for ``name``, if any."""
        ...


@runtime_checkable
class StatementHandleProtocol(Protocol):
    """A prepared statement accepting positional values."""

    def set_positional_value(self, index: int, descriptor: "ParameterDescriptor", value: Any) -> None:
        """Bind ``value`` to the 1-based slot ``index``."""
        ...

    def close(self) -> None:
        """Release the statement."""
        ...


@runtime_checkable
class ConnectionProtocol(Protocol):
    """Something that prepares statement handles."""

    def prepare(self, sql: str, options: "StatementOptions") -> StatementHandleProtocol:
        """Prepare ``sql`` and return a statement handle."""
        ...


@runtime_checkable
class DisposableValue(Protocol):
    """A bound value holding a resource (stream, large object) that must be released."""

    def cleanup(self) -> None:
        """Release the resource. Must tolerate repeated calls."""
        ...
