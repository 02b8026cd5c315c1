"""Value types shared by the scanner, builder and binder.

Components:
- SqlType: Integer type codes (JDBC numbering) plus array detection
- ParameterDescriptor: Declared or overriding parameter type metadata
- TypedValue: A value carrying its own descriptor
- ParameterOccurrence: One placeholder found by the scanner
- ParsedStatement: Immutable scan result, safe to share between threads
- BuiltParameters: Value and descriptor lists aligned to final placeholders
"""

from collections.abc import Collection, Iterator, Mapping, Sequence
from enum import IntEnum
from typing import Any, Final, Optional, Union

from mypy_extensions import mypyc_attr
from sqlglot import exp
from sqlglot.errors import SqlglotError
from typing_extensions import TypeAlias

from sqlbind.exceptions import ParameterError

__all__ = (
    "BuiltParameters",
    "ParameterDescriptor",
    "ParameterOccurrence",
    "ParsedStatement",
    "SqlType",
    "SqlTypeCode",
    "TypedValue",
    "UNKNOWN_DESCRIPTOR",
    "is_array_type",
    "is_expandable",
    "iter_expanded",
    "slot_values",
    "unwrap_value",
)


class SqlType(IntEnum):
    """Common integer type codes, numbered as ``java.sql.Types``."""

    UNKNOWN = -2147483648
    BIT = -7
    TINYINT = -6
    BIGINT = -5
    LONGVARBINARY = -4
    VARBINARY = -3
    BINARY = -2
    LONGVARCHAR = -1
    NULL = 0
    CHAR = 1
    NUMERIC = 2
    DECIMAL = 3
    INTEGER = 4
    SMALLINT = 5
    FLOAT = 6
    REAL = 7
    DOUBLE = 8
    VARCHAR = 12
    BOOLEAN = 16
    DATE = 91
    TIME = 92
    TIMESTAMP = 93
    OTHER = 1111
    JAVA_OBJECT = 2000
    STRUCT = 2002
    ARRAY = 2003
    BLOB = 2004
    CLOB = 2005


SqlTypeCode: TypeAlias = Union[int, exp.DataType.Type]

_ARRAY_CODES: Final = frozenset({SqlType.ARRAY, exp.DataType.Type.ARRAY})


def is_array_type(sql_type: "Optional[SqlTypeCode]") -> bool:
    """Return True when the type code binds a container as one opaque value."""
    return sql_type in _ARRAY_CODES


@mypyc_attr(allow_interpreted_subclasses=False)
class ParameterDescriptor:
    """Type metadata for a single parameter.

    Used both as a declaration (what a statement expects at a slot) and as an
    override attached to a value through :class:`TypedValue`.

    Attributes:
        name: Optional parameter name
        sql_type: Integer or sqlglot type code
        type_name: Optional vendor type name
        scale: Optional numeric scale
    """

    __slots__ = ("name", "scale", "sql_type", "type_name")

    def __init__(
        self,
        name: Optional[str] = None,
        sql_type: SqlTypeCode = SqlType.UNKNOWN,
        type_name: Optional[str] = None,
        scale: Optional[int] = None,
    ) -> None:
        self.name = name
        self.sql_type = sql_type
        self.type_name = type_name
        self.scale = scale

    @classmethod
    def from_type_name(
        cls, name: Optional[str], type_name: str, dialect: Optional[str] = None
    ) -> "ParameterDescriptor":
        """Build a descriptor from a SQL type string such as ``VARCHAR(10)`` or ``INT[]``.

        Args:
            name: Parameter name
            type_name: SQL type text
            dialect: sqlglot dialect used to read the type

        Raises:
            ParameterError: If sqlglot cannot read the type text.

        Returns:
            Descriptor whose ``sql_type`` is the sqlglot type member.
        """
        try:
            data_type = exp.DataType.build(type_name, dialect=dialect)
        except (SqlglotError, ValueError) as exc:
            msg = f"Unrecognised SQL type {type_name!r} for parameter {name!r}"
            raise ParameterError(msg) from exc
        scale = None
        if data_type.this == exp.DataType.Type.DECIMAL and len(data_type.expressions) > 1:
            scale = int(data_type.expressions[1].name)
        return cls(name=name, sql_type=data_type.this, type_name=type_name, scale=scale)

    @property
    def is_array(self) -> bool:
        return is_array_type(self.sql_type)

    def with_name(self, name: Optional[str]) -> "ParameterDescriptor":
        """Return a copy of this descriptor under another name."""
        return ParameterDescriptor(name=name, sql_type=self.sql_type, type_name=self.type_name, scale=self.scale)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ParameterDescriptor):
            return False
        return (
            self.name == other.name
            and self.sql_type == other.sql_type
            and self.type_name == other.type_name
            and self.scale == other.scale
        )

    def __hash__(self) -> int:
        return hash((self.name, self.sql_type, self.type_name, self.scale))

    def __repr__(self) -> str:
        return (
            f"ParameterDescriptor(name={self.name!r}, sql_type={self.sql_type!r}, "
            f"type_name={self.type_name!r}, scale={self.scale!r})"
        )


UNKNOWN_DESCRIPTOR: Final = ParameterDescriptor()


@mypyc_attr(allow_interpreted_subclasses=False)
class TypedValue:
    """A value wrapped with its own type metadata.

    The descriptor takes precedence over the declared descriptor of whatever
    slot the value ends up bound to.
    """

    __slots__ = ("descriptor", "value")

    def __init__(self, value: Any, descriptor: ParameterDescriptor) -> None:
        self.value = value
        self.descriptor = descriptor

    @classmethod
    def of(
        cls, value: Any, sql_type: SqlTypeCode, type_name: Optional[str] = None, scale: Optional[int] = None
    ) -> "TypedValue":
        return cls(value, ParameterDescriptor(sql_type=sql_type, type_name=type_name, scale=scale))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TypedValue):
            return False
        return self.value == other.value and self.descriptor == other.descriptor

    def __hash__(self) -> int:
        try:
            value_hash = hash(self.value)
        except TypeError:
            value_hash = hash(repr(self.value))
        return hash((value_hash, self.descriptor))

    def __repr__(self) -> str:
        return f"TypedValue({self.value!r}, {self.descriptor!r})"


def unwrap_value(obj: Any) -> "tuple[Any, Optional[ParameterDescriptor]]":
    """Split a plain value or :class:`TypedValue` into ``(value, override)``."""
    if isinstance(obj, TypedValue):
        return obj.value, obj.descriptor
    return obj, None


def is_expandable(value: Any, descriptor: "Optional[ParameterDescriptor]" = None) -> bool:
    """Return True when ``value`` should occupy one slot per element.

    Strings, bytes and mappings are scalars. Any other sized collection
    expands unless the governing descriptor declares the array type.
    """
    if descriptor is not None and descriptor.is_array:
        return False
    if isinstance(value, (str, bytes, bytearray, memoryview, Mapping)):
        return False
    return isinstance(value, Collection)


def iter_expanded(value: "Collection[Any]") -> Iterator[Any]:
    """Yield one item per slot, flattening tuple entries one level."""
    for entry in value:
        if isinstance(entry, tuple):
            yield from entry
        else:
            yield entry


def slot_values(value: "Collection[Any]", null_for_empty: bool = True) -> "list[Any]":
    """Values for the slots of an expanded collection.

    An empty collection still renders one ``?`` unless rendered as ``NULL``,
    so it takes a single ``None`` when ``null_for_empty`` is set.
    """
    items = list(iter_expanded(value))
    if not items and null_for_empty:
        return [None]
    return items


@mypyc_attr(allow_interpreted_subclasses=False)
class ParameterOccurrence:
    """One placeholder found in the source SQL.

    Attributes:
        name: Parameter name, ``None`` for an anonymous ``?``
        source_start: Offset of the placeholder in the source SQL
        source_end: Offset one past the placeholder in the source SQL
        position: Offset of the replacing ``?`` in the canonical SQL
        ordinal: Zero-based index among all occurrences
    """

    __slots__ = ("name", "ordinal", "position", "source_end", "source_start")

    def __init__(self, name: Optional[str], source_start: int, source_end: int, position: int, ordinal: int) -> None:
        self.name = name
        self.source_start = source_start
        self.source_end = source_end
        self.position = position
        self.ordinal = ordinal

    @property
    def is_anonymous(self) -> bool:
        return self.name is None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ParameterOccurrence):
            return False
        return (
            self.name == other.name
            and self.source_start == other.source_start
            and self.source_end == other.source_end
            and self.position == other.position
        )

    def __hash__(self) -> int:
        return hash((self.name, self.source_start, self.source_end, self.position))

    def __repr__(self) -> str:
        return (
            f"ParameterOccurrence(name={self.name!r}, source_start={self.source_start!r}, "
            f"source_end={self.source_end!r}, position={self.position!r}, ordinal={self.ordinal!r})"
        )


@mypyc_attr(allow_interpreted_subclasses=False)
class ParsedStatement:
    """Immutable result of scanning one SQL text.

    ``canonical_sql`` has every recognised placeholder replaced by ``?``;
    ``occurrences`` lists those placeholders left to right. Instances are
    never mutated after construction, so one instance may be cached and read
    by any number of threads.
    """

    __slots__ = (
        "_named_parameter_count",
        "anonymous_parameter_count",
        "canonical_sql",
        "escape_positions",
        "occurrences",
        "sql",
    )

    def __init__(
        self,
        sql: str,
        canonical_sql: str,
        occurrences: "Sequence[ParameterOccurrence]",
        escape_positions: "Sequence[int]" = (),
    ) -> None:
        self.sql = sql
        self.canonical_sql = canonical_sql
        self.occurrences: tuple[ParameterOccurrence, ...] = tuple(occurrences)
        self.escape_positions: tuple[int, ...] = tuple(escape_positions)
        self.anonymous_parameter_count = sum(1 for occ in self.occurrences if occ.name is None)
        self._named_parameter_count = len({occ.name for occ in self.occurrences if occ.name is not None})

    @property
    def total_parameter_count(self) -> int:
        return len(self.occurrences)

    @property
    def named_parameter_count(self) -> int:
        """Number of distinct names among the occurrences."""
        return self._named_parameter_count

    @property
    def parameter_names(self) -> "tuple[Optional[str], ...]":
        """Names in occurrence order, ``None`` for anonymous placeholders."""
        return tuple(occ.name for occ in self.occurrences)

    @property
    def distinct_names(self) -> tuple[str, ...]:
        """Distinct names in order of first appearance."""
        return tuple(dict.fromkeys(occ.name for occ in self.occurrences if occ.name is not None))

    @property
    def has_mixed_styles(self) -> bool:
        return self._named_parameter_count > 0 and self.anonymous_parameter_count > 0

    @property
    def is_anonymous_only(self) -> bool:
        return self._named_parameter_count == 0 and self.anonymous_parameter_count > 0

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ParsedStatement):
            return False
        return (
            self.sql == other.sql
            and self.canonical_sql == other.canonical_sql
            and self.occurrences == other.occurrences
        )

    def __hash__(self) -> int:
        return hash((self.sql, self.canonical_sql, self.occurrences))

    def __repr__(self) -> str:
        return f"ParsedStatement(canonical_sql={self.canonical_sql!r}, parameter_names={self.parameter_names!r})"


@mypyc_attr(allow_interpreted_subclasses=False)
class BuiltParameters:
    """Values and descriptors aligned 1:1 with the final placeholders."""

    __slots__ = ("descriptors", "values")

    def __init__(self, values: "list[Any]", descriptors: "list[ParameterDescriptor]") -> None:
        self.values = values
        self.descriptors = descriptors

    @property
    def types(self) -> "list[SqlTypeCode]":
        return [descriptor.sql_type for descriptor in self.descriptors]

    @property
    def type_names(self) -> "list[Optional[str]]":
        return [descriptor.type_name for descriptor in self.descriptors]

    def __iter__(self) -> "Iterator[tuple[Any, ParameterDescriptor]]":
        return iter(zip(self.values, self.descriptors))

    def __len__(self) -> int:
        return len(self.values)

    def __repr__(self) -> str:
        return f"BuiltParameters(values={self.values!r}, descriptors={self.descriptors!r})"
