"""Value sources backing named parameter resolution."""

from collections.abc import Mapping
from datetime import date, datetime, time
from decimal import Decimal
from functools import singledispatch
from typing import Any, Optional

from sqlbind.core.types import ParameterDescriptor, SqlType, SqlTypeCode, TypedValue, unwrap_value
from sqlbind.protocols import ValueSourceProtocol

__all__ = (
    "EmptyValueSource",
    "MapValueSource",
    "RecordValueSource",
    "as_value_source",
    "infer_sql_type",
    "resolve_parameter",
)


@singledispatch
def infer_sql_type(value: Any) -> "SqlTypeCode":
    """Best-effort type code for a Python value."""
    return SqlType.UNKNOWN


@infer_sql_type.register
def _(value: TypedValue) -> "SqlTypeCode":
    return value.descriptor.sql_type


@infer_sql_type.register
def _(value: bool) -> "SqlTypeCode":
    return SqlType.BOOLEAN


@infer_sql_type.register
def _(value: int) -> "SqlTypeCode":
    return SqlType.BIGINT


@infer_sql_type.register
def _(value: float) -> "SqlTypeCode":
    return SqlType.DOUBLE


@infer_sql_type.register
def _(value: Decimal) -> "SqlTypeCode":
    return SqlType.DECIMAL


@infer_sql_type.register
def _(value: str) -> "SqlTypeCode":
    return SqlType.VARCHAR


@infer_sql_type.register
def _(value: bytes) -> "SqlTypeCode":
    return SqlType.VARBINARY


@infer_sql_type.register
def _(value: datetime) -> "SqlTypeCode":
    return SqlType.TIMESTAMP


@infer_sql_type.register
def _(value: date) -> "SqlTypeCode":
    return SqlType.DATE


@infer_sql_type.register
def _(value: time) -> "SqlTypeCode":
    return SqlType.TIME


class MapValueSource:
    """Value source backed by a mapping, with optional per-name types."""

    __slots__ = ("_type_names", "_types", "_values")

    def __init__(
        self,
        values: "Optional[Mapping[str, Any]]" = None,
        types: "Optional[Mapping[str, SqlTypeCode]]" = None,
        type_names: "Optional[Mapping[str, str]]" = None,
    ) -> None:
        self._values: dict[str, Any] = dict(values or {})
        self._types: dict[str, SqlTypeCode] = dict(types or {})
        self._type_names: dict[str, str] = dict(type_names or {})

    def add_value(
        self, name: str, value: Any, sql_type: "Optional[SqlTypeCode]" = None, type_name: Optional[str] = None
    ) -> "MapValueSource":
        """Register a value, and optionally its type, under ``name``.

        Returns:
            This source, so calls can be chained.
        """
        self._values[name] = value
        if sql_type is not None:
            self._types[name] = sql_type
        if type_name is not None:
            self._type_names[name] = type_name
        return self

    @property
    def values(self) -> "dict[str, Any]":
        return dict(self._values)

    def has_value(self, name: str) -> bool:
        return name in self._values

    def get_value(self, name: str) -> Any:
        return self._values[name]

    def get_sql_type(self, name: str) -> "Optional[SqlTypeCode]":
        return self._types.get(name)

    def get_type_name(self, name: str) -> Optional[str]:
        return self._type_names.get(name)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"MapValueSource({self._values!r})"


class RecordValueSource:
    """Value source reading attributes of a record (dataclass, msgspec struct, plain object).

    Types registered explicitly win; otherwise the type is inferred from the
    attribute's current value.
    """

    __slots__ = ("_record", "_type_names", "_types")

    def __init__(
        self,
        record: Any,
        types: "Optional[Mapping[str, SqlTypeCode]]" = None,
        type_names: "Optional[Mapping[str, str]]" = None,
    ) -> None:
        self._record = record
        self._types: dict[str, SqlTypeCode] = dict(types or {})
        self._type_names: dict[str, str] = dict(type_names or {})

    def has_value(self, name: str) -> bool:
        return not name.startswith("_") and hasattr(self._record, name)

    def get_value(self, name: str) -> Any:
        if not self.has_value(name):
            raise KeyError(name)
        return getattr(self._record, name)

    def get_sql_type(self, name: str) -> "Optional[SqlTypeCode]":
        if name in self._types:
            return self._types[name]
        if not self.has_value(name):
            return None
        sql_type = infer_sql_type(getattr(self._record, name))
        return None if sql_type == SqlType.UNKNOWN else sql_type

    def get_type_name(self, name: str) -> Optional[str]:
        return self._type_names.get(name)

    def __repr__(self) -> str:
        return f"RecordValueSource({self._record!r})"


class EmptyValueSource:
    """Value source that holds nothing."""

    __slots__ = ()

    def has_value(self, name: str) -> bool:
        return False

    def get_value(self, name: str) -> Any:
        raise KeyError(name)

    def get_sql_type(self, name: str) -> "Optional[SqlTypeCode]":
        return None

    def get_type_name(self, name: str) -> Optional[str]:
        return None


def as_value_source(obj: Any) -> "Optional[ValueSourceProtocol]":
    """Adapt ``obj`` to a value source.

    ``None`` stays ``None``; mappings are wrapped in :class:`MapValueSource`;
    existing value sources pass through; anything else is read by attribute.
    """
    if obj is None:
        return None
    if isinstance(obj, ValueSourceProtocol):
        return obj
    if isinstance(obj, Mapping):
        return MapValueSource(obj)
    return RecordValueSource(obj)


def resolve_parameter(source: ValueSourceProtocol, name: str) -> "tuple[Any, ParameterDescriptor]":
    """Resolve ``name`` to its value and governing descriptor.

    A :class:`TypedValue` held by the source is unwrapped here and its
    descriptor wins over the types registered on the source.

    Raises:
        KeyError: If the source holds no value for ``name``.
    """
    if not source.has_value(name):
        raise KeyError(name)
    value, override = unwrap_value(source.get_value(name))
    if override is not None:
        return value, override if override.name is not None else override.with_name(name)
    sql_type = source.get_sql_type(name)
    return value, ParameterDescriptor(
        name=name,
        sql_type=SqlType.UNKNOWN if sql_type is None else sql_type,
        type_name=source.get_type_name(name),
    )
