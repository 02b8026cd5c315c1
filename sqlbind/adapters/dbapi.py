"""Statement handles over PEP 249 connections using the ``qmark`` paramstyle."""

import contextlib
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any, Optional

from sqlbind.exceptions import DriverBindingError
from sqlbind.utils.logging import get_logger, statement_extra

if TYPE_CHECKING:
    from sqlbind.core.config import StatementOptions
    from sqlbind.core.types import ParameterDescriptor

__all__ = ("DBAPIConnection", "DBAPIStatementHandle")

logger = get_logger("adapters.dbapi")


class DBAPIStatementHandle:
    """Collects positional values and executes them on a DB-API cursor.

    Positions are 1-based; a slot that was never set executes as ``None``.
    """

    __slots__ = ("_closed", "_cursor", "_type_coercion_map", "_values", "options", "sql")

    def __init__(
        self,
        cursor: Any,
        sql: str,
        options: "Optional[StatementOptions]" = None,
        type_coercion_map: "Optional[Mapping[type, Callable[[Any], Any]]]" = None,
    ) -> None:
        self._cursor = cursor
        self._values: dict[int, Any] = {}
        self._type_coercion_map = dict(type_coercion_map or {})
        self._closed = False
        self.sql = sql
        self.options = options

    @property
    def cursor(self) -> Any:
        return self._cursor

    @property
    def parameters(self) -> "list[Any]":
        """Values in slot order."""
        if not self._values:
            return []
        return [self._values.get(index) for index in range(1, max(self._values) + 1)]

    def _coerce(self, value: Any) -> Any:
        for value_type, converter in self._type_coercion_map.items():
            if isinstance(value, value_type):
                return converter(value)
        return value

    def set_positional_value(self, index: int, descriptor: "ParameterDescriptor", value: Any) -> None:
        if self._closed:
            msg = "Cannot bind to a closed statement"
            raise DriverBindingError(msg, index=index, descriptor=descriptor)
        if index < 1:
            msg = f"Parameter index must be 1 or greater, got {index}"
            raise DriverBindingError(msg, index=index, descriptor=descriptor)
        self._values[index] = self._coerce(value)

    def clear_parameters(self) -> None:
        self._values.clear()

    def execute(self) -> Any:
        """Execute the SQL with the bound values and return the cursor."""
        logger.debug(
            "Executing statement with %d parameter(s)",
            len(self._values),
            extra=statement_extra(self.sql, parameters=len(self._values)),
        )
        return self._cursor.execute(self.sql, self.parameters)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        with contextlib.suppress(Exception):
            self._cursor.close()

    def __enter__(self) -> "DBAPIStatementHandle":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()


class DBAPIConnection:
    """Adapts a PEP 249 connection to :class:`~sqlbind.protocols.ConnectionProtocol`."""

    __slots__ = ("_type_coercion_map", "connection")

    def __init__(
        self, connection: Any, type_coercion_map: "Optional[Mapping[type, Callable[[Any], Any]]]" = None
    ) -> None:
        self.connection = connection
        self._type_coercion_map = dict(type_coercion_map or {})

    def prepare(self, sql: str, options: "StatementOptions") -> DBAPIStatementHandle:
        return DBAPIStatementHandle(self.connection.cursor(), sql, options, self._type_coercion_map)
