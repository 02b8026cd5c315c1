"""Positional binding of runtime values onto a statement handle.

The binder walks the runtime values in order with a running 1-based slot
counter. A value's own descriptor (``TypedValue``) governs its slot instead
of the declared one. Collections expand to one slot per element unless the
governing type is the array type.
"""

from collections.abc import Generator, Iterator, Sequence
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Optional

from mypy_extensions import mypyc_attr

from sqlbind.core.config import DEFAULT_PARAMETER_CONFIG
from sqlbind.core.types import is_expandable, slot_values, unwrap_value
from sqlbind.exceptions import ArityMismatchError, wrap_driver_exceptions
from sqlbind.protocols import DisposableValue
from sqlbind.utils.logging import get_logger, statement_extra

if TYPE_CHECKING:
    from sqlbind.core.config import ParameterConfig
    from sqlbind.core.types import ParameterDescriptor
    from sqlbind.protocols import StatementHandleProtocol

__all__ = ("BoundParameterList", "ParameterBinder", "bind", "bound_parameters", "cleanup_values", "dispose")

logger = get_logger("core.binder")


def cleanup_values(values: "Sequence[Any]") -> None:
    """Release every resource-bearing value in ``values``.

    ``TypedValue`` wrappers are unwrapped and collections are searched one
    level deep. Every value gets its cleanup call even if an earlier one
    fails; the first failure is raised afterwards.
    """
    first_error: Optional[Exception] = None
    for raw in values:
        value, _ = unwrap_value(raw)
        candidates: Any = value
        if isinstance(value, DisposableValue) or not is_expandable(value):
            candidates = (value,)
        for candidate in candidates:
            candidate, _ = unwrap_value(candidate)
            if not isinstance(candidate, DisposableValue):
                continue
            try:
                candidate.cleanup()
            except Exception as exc:
                logger.debug("Cleanup of bound value %r failed: %s", candidate, exc)
                if first_error is None:
                    first_error = exc
    if first_error is not None:
        raise first_error


@mypyc_attr(allow_interpreted_subclasses=False)
class BoundParameterList:
    """``(value, descriptor)`` pairs aligned with the final placeholders of one execution.

    Not cached and not shared: each execution builds its own list, binds it
    and disposes it.
    """

    __slots__ = ("_disposed", "_entries", "_source_values", "sql")

    def __init__(
        self,
        sql: str,
        entries: "list[tuple[Any, ParameterDescriptor]]",
        source_values: "Sequence[Any]" = (),
    ) -> None:
        self.sql = sql
        self._entries = entries
        self._source_values = tuple(source_values)
        self._disposed = False

    @property
    def values(self) -> "list[Any]":
        return [value for value, _ in self._entries]

    @property
    def descriptors(self) -> "list[ParameterDescriptor]":
        return [descriptor for _, descriptor in self._entries]

    @property
    def disposed(self) -> bool:
        return self._disposed

    def apply(self, handle: "StatementHandleProtocol") -> None:
        """Push every pair onto ``handle``.

        Raises:
            DriverBindingError: If the handle rejects a value.
        """
        for index, (value, descriptor) in enumerate(self._entries, start=1):
            with wrap_driver_exceptions(index, descriptor):
                handle.set_positional_value(index, descriptor, value)
        count = len(self._entries)
        logger.debug("Bound %d positional value(s)", count, extra=statement_extra(self.sql, slots=count))

    def dispose(self) -> None:
        """Release resource-bearing values. Safe to call more than once."""
        if self._disposed:
            return
        self._disposed = True
        cleanup_values(self._source_values)

    def __iter__(self) -> "Iterator[tuple[Any, ParameterDescriptor]]":
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __getitem__(self, index: int) -> "tuple[Any, ParameterDescriptor]":
        return self._entries[index]

    def __repr__(self) -> str:
        return f"BoundParameterList(sql={self.sql!r}, parameters={self.values!r})"


@mypyc_attr(allow_interpreted_subclasses=False)
class ParameterBinder:
    """Binds ordered runtime values for one SQL statement.

    Args:
        sql: Final SQL (already rendered).
        declared_parameters: Descriptors the statement declares.
        parameters: Descriptors actually used for this SQL, when they differ
            from the declared ones (e.g. after named expansion). Defaults to
            ``declared_parameters``.
        config: Expansion policy.
        expand: Expand collection values to one slot per element. Pass ``False``
            when the values were already expanded against the final SQL.
        occurrence_names: Placeholder names of the statement in order, used for
            the distinct-name check instead of the names of ``parameters``.
    """

    __slots__ = ("config", "declared_parameters", "expand", "occurrence_names", "parameters", "sql")

    def __init__(
        self,
        sql: str,
        declared_parameters: "Sequence[ParameterDescriptor]",
        parameters: "Optional[Sequence[ParameterDescriptor]]" = None,
        config: "Optional[ParameterConfig]" = None,
        expand: bool = True,
        occurrence_names: "Optional[Sequence[Optional[str]]]" = None,
    ) -> None:
        self.sql = sql
        self.declared_parameters = tuple(declared_parameters)
        self.parameters = tuple(parameters) if parameters is not None else self.declared_parameters
        self.config = config or DEFAULT_PARAMETER_CONFIG
        self.expand = expand
        self.occurrence_names = tuple(occurrence_names) if occurrence_names is not None else None

    def check_arity(self, values: "Sequence[Any]") -> None:
        """Validate ``values`` against the declared parameters.

        Fewer values than parameters is allowed; more is not. When the
        parameters in use differ in length from the declared ones, their
        distinct names must still match the declared count.

        Raises:
            ArityMismatchError: On either mismatch.
        """
        if len(self.parameters) < len(values):
            msg = f"Given {len(values)} parameters but expected {len(self.parameters)}"
            raise ArityMismatchError(msg, self.sql, expected=len(self.parameters), given=len(values))
        if len(self.parameters) != len(self.declared_parameters):
            occurrence_names = self.occurrence_names
            if occurrence_names is None:
                occurrence_names = tuple(parameter.name for parameter in self.parameters)
            names = {
                name if name is not None else f"Parameter #{position}" for position, name in enumerate(occurrence_names)
            }
            if len(names) != len(self.declared_parameters):
                msg = f"Given {len(names)} parameters but expected {len(self.declared_parameters)}"
                raise ArityMismatchError(msg, self.sql, expected=len(self.declared_parameters), given=len(names))

    def prepare(self, values: "Sequence[Any]") -> BoundParameterList:
        """Expand ``values`` into slot order without touching a statement handle."""
        self.check_arity(values)
        null_for_empty = self.config.empty_collection == "placeholder"
        entries: list[tuple[Any, ParameterDescriptor]] = []
        for raw, declared in zip(values, self.parameters):
            value, override = unwrap_value(raw)
            descriptor = override or declared
            if not self.expand or not is_expandable(value, descriptor):
                entries.append((value, descriptor))
                continue
            for item in slot_values(value, null_for_empty):
                item_value, item_override = unwrap_value(item)
                entries.append((item_value, item_override or descriptor))
        return BoundParameterList(self.sql, entries, values)

    def bind(self, values: "Sequence[Any]", handle: "StatementHandleProtocol") -> BoundParameterList:
        """Expand ``values`` and push them onto ``handle``.

        If the handle rejects a value, the resource-bearing values are
        released before the error propagates.

        Raises:
            ArityMismatchError: If more values than parameters are given.
            DriverBindingError: If the handle rejects a value.
        """
        bound = self.prepare(values)
        try:
            bound.apply(handle)
        except Exception:
            bound.dispose()
            raise
        return bound


def bind(
    sql: str,
    declared_parameters: "Sequence[ParameterDescriptor]",
    values: "Sequence[Any]",
    handle: "Optional[StatementHandleProtocol]" = None,
    config: "Optional[ParameterConfig]" = None,
) -> BoundParameterList:
    """Build the bound parameter list for ``values`` and, given a handle, bind it.

    Raises:
        ArityMismatchError: If more values than declared parameters are given.
        DriverBindingError: If the handle rejects a value.

    Returns:
        The bound parameter list; the caller must :func:`dispose` it.
    """
    binder = ParameterBinder(sql, declared_parameters, config=config)
    if handle is None:
        return binder.prepare(values)
    return binder.bind(values, handle)


def dispose(bound: "Optional[BoundParameterList]") -> None:
    """Release the resource-bearing values of ``bound``; ``None`` is ignored."""
    if bound is not None:
        bound.dispose()


@contextmanager
def bound_parameters(
    sql: str,
    declared_parameters: "Sequence[ParameterDescriptor]",
    values: "Sequence[Any]",
    handle: "StatementHandleProtocol",
    config: "Optional[ParameterConfig]" = None,
) -> "Generator[BoundParameterList, None, None]":
    """Bind ``values`` onto ``handle`` and dispose them when the block exits.

    Example:
        with bound_parameters(sql, declared, values, handle):
            handle.execute()
    """
    bound = bind(sql, declared_parameters, values, handle, config)
    try:
        yield bound
    finally:
        bound.dispose()
