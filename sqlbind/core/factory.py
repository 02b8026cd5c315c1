"""Factories producing statement creators for one SQL text and its declared parameters."""

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any, Optional

from mypy_extensions import mypyc_attr

from sqlbind.core.binder import BoundParameterList, ParameterBinder
from sqlbind.core.builder import build_values_and_descriptors
from sqlbind.core.cache import parse_cached
from sqlbind.core.config import StatementOptions
from sqlbind.core.substitution import render
from sqlbind.core.types import ParameterDescriptor
from sqlbind.utils.logging import get_logger, statement_extra

if TYPE_CHECKING:
    from sqlbind.core.config import ParameterConfig
    from sqlbind.core.types import SqlTypeCode
    from sqlbind.protocols import ConnectionProtocol, StatementHandleProtocol

__all__ = ("PreparedStatementCreator", "PreparedStatementFactory")

logger = get_logger("core.factory")


@mypyc_attr(allow_interpreted_subclasses=False)
class PreparedStatementFactory:
    """Holds a SQL text, its declared parameters and prepare options.

    The factory is immutable; :meth:`add_parameter` and
    :meth:`with_options` return new factories.
    """

    __slots__ = ("config", "declared_parameters", "options", "sql")

    def __init__(
        self,
        sql: Optional[str],
        declared_parameters: "Sequence[ParameterDescriptor]" = (),
        options: Optional[StatementOptions] = None,
        config: "Optional[ParameterConfig]" = None,
    ) -> None:
        self.sql = sql
        self.declared_parameters: tuple[ParameterDescriptor, ...] = tuple(declared_parameters)
        self.options = options or StatementOptions()
        self.config = config

    @classmethod
    def from_types(
        cls, sql: Optional[str], types: "Sequence[SqlTypeCode]", options: Optional[StatementOptions] = None
    ) -> "PreparedStatementFactory":
        """Declare one anonymous parameter per type code."""
        return cls(sql, [ParameterDescriptor(sql_type=sql_type) for sql_type in types], options)

    def add_parameter(self, descriptor: ParameterDescriptor) -> "PreparedStatementFactory":
        """Return a factory with ``descriptor`` appended; declaration order is significant."""
        return PreparedStatementFactory(self.sql, (*self.declared_parameters, descriptor), self.options, self.config)

    def with_options(self, **changes: Any) -> "PreparedStatementFactory":
        options = self.options.replace(**changes)
        return PreparedStatementFactory(self.sql, self.declared_parameters, options, self.config)

    def new_creator(
        self,
        values: "Optional[Sequence[Any]]" = None,
        sql: Optional[str] = None,
        parameters: "Optional[Sequence[ParameterDescriptor]]" = None,
    ) -> "PreparedStatementCreator":
        """Create a creator for one execution.

        Args:
            values: Runtime values in declaration order; ``None`` means none.
            sql: SQL to use instead of the factory's (e.g. after named expansion).
            parameters: Descriptors matching ``sql`` when it differs from the factory's.

        Raises:
            ArityMismatchError: If the values or parameters disagree with the declaration.
        """
        actual_sql = sql if sql is not None else self.sql
        if actual_sql is None:
            msg = "No SQL given and the factory was created without SQL"
            raise ValueError(msg)
        binder = ParameterBinder(actual_sql, self.declared_parameters, parameters, self.config)
        return PreparedStatementCreator(binder, list(values or ()), self.options)

    def from_named(self, source: Any) -> "PreparedStatementCreator":
        """Create a creator for the factory's named SQL resolved against ``source``.

        The SQL is scanned through the default cache, rendered with collection
        expansion and paired with the expanded values and descriptors. Those
        values already line up with the rendered placeholders, so the binder
        binds them one slot each.
        """
        if self.sql is None:
            msg = "Named parameter resolution needs the factory's SQL"
            raise ValueError(msg)
        parsed = parse_cached(self.sql, self.config)
        final_sql = render(parsed, source, self.config)
        built = build_values_and_descriptors(parsed, source, self.config)
        declared = self.declared_parameters
        if not declared:
            if parsed.distinct_names:
                declared = tuple(ParameterDescriptor(name=name) for name in parsed.distinct_names)
            else:
                declared = tuple(ParameterDescriptor() for _ in parsed.occurrences)
        binder = ParameterBinder(
            final_sql,
            declared,
            built.descriptors,
            self.config,
            expand=False,
            occurrence_names=parsed.parameter_names,
        )
        logger.debug(
            "Resolved %d named occurrence(s) into %d slot(s)",
            parsed.total_parameter_count,
            len(built.values),
            extra=statement_extra(final_sql, slots=len(built.values)),
        )
        return PreparedStatementCreator(binder, built.values, self.options)

    def __repr__(self) -> str:
        return f"PreparedStatementFactory(sql={self.sql!r}, declared_parameters={self.declared_parameters!r})"


@mypyc_attr(allow_interpreted_subclasses=False)
class PreparedStatementCreator:
    """Prepares, binds and cleans up one execution of a statement."""

    __slots__ = ("_binder", "_bound", "options", "values")

    def __init__(self, binder: ParameterBinder, values: "list[Any]", options: StatementOptions) -> None:
        binder.check_arity(values)
        self._binder = binder
        self._bound: Optional[BoundParameterList] = None
        self.values = values
        self.options = options

    @property
    def sql(self) -> str:
        return self._binder.sql

    @property
    def bound(self) -> Optional[BoundParameterList]:
        return self._bound

    def create(self, connection: "ConnectionProtocol") -> "StatementHandleProtocol":
        """Prepare the statement on ``connection`` and bind the values.

        The handle is closed again if binding fails.

        Raises:
            DriverBindingError: If the handle rejects a value.
        """
        handle = connection.prepare(self.sql, self.options)
        try:
            self.set_values(handle)
        except Exception:
            handle.close()
            raise
        return handle

    def set_values(self, handle: "StatementHandleProtocol") -> BoundParameterList:
        bound = self._binder.prepare(self.values)
        self._bound = bound
        try:
            bound.apply(handle)
        except Exception:
            bound.dispose()
            raise
        return bound

    def cleanup(self) -> None:
        """Release resource-bearing values, whether or not binding happened."""
        if self._bound is not None:
            self._bound.dispose()
            return
        self._binder.prepare(self.values).dispose()

    def __repr__(self) -> str:
        return f"PreparedStatementCreator(sql={self.sql!r}, parameters={self.values!r})"
