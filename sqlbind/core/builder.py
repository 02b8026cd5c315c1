"""Build value and type arrays aligned with the final placeholders.

The arrays line up 1:1 with the ``?`` markers produced by
:func:`sqlbind.core.substitution.render` for the same source, including
collection expansion.
"""

from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any, Optional, Union

from typing_extensions import TypeAlias

from sqlbind.core.cache import parse_cached
from sqlbind.core.config import DEFAULT_PARAMETER_CONFIG
from sqlbind.core.sources import EmptyValueSource, as_value_source, resolve_parameter
from sqlbind.core.types import (
    UNKNOWN_DESCRIPTOR,
    BuiltParameters,
    ParameterDescriptor,
    ParsedStatement,
    is_expandable,
    slot_values,
    unwrap_value,
)
from sqlbind.exceptions import ArityMismatchError, MissingParameterValueError, MixedParameterStyleError
from sqlbind.utils.logging import get_logger, statement_extra

if TYPE_CHECKING:
    from sqlbind.core.config import ParameterConfig
    from sqlbind.core.types import SqlTypeCode
    from sqlbind.protocols import ValueSourceProtocol

__all__ = (
    "build_descriptors",
    "build_type_names",
    "build_types",
    "build_values",
    "build_values_and_descriptors",
)

logger = get_logger("core.builder")

StatementInput: TypeAlias = Union[str, ParsedStatement]


def _parsed(statement: StatementInput, config: "ParameterConfig") -> ParsedStatement:
    return statement if isinstance(statement, ParsedStatement) else parse_cached(statement, config)


def _is_positional(source: Any) -> bool:
    return isinstance(source, Sequence) and not isinstance(source, (str, bytes, bytearray))


def _append(
    values: "list[Any]",
    descriptors: "list[ParameterDescriptor]",
    value: Any,
    descriptor: ParameterDescriptor,
    config: "ParameterConfig",
) -> None:
    if not is_expandable(value, descriptor):
        values.append(value)
        descriptors.append(descriptor)
        return
    for item in slot_values(value, config.empty_collection == "placeholder"):
        item_value, item_override = unwrap_value(item)
        values.append(item_value)
        if item_override is None:
            descriptors.append(descriptor)
        elif item_override.name is None:
            descriptors.append(item_override.with_name(descriptor.name))
        else:
            descriptors.append(item_override)


def _build_positional(
    parsed: ParsedStatement, source: "Sequence[Any]", config: "ParameterConfig"
) -> BuiltParameters:
    if len(source) != parsed.total_parameter_count:
        msg = f"Given {len(source)} positional values but expected {parsed.total_parameter_count}"
        raise ArityMismatchError(msg, parsed.sql, expected=parsed.total_parameter_count, given=len(source))
    values: list[Any] = []
    descriptors: list[ParameterDescriptor] = []
    for raw in source:
        value, override = unwrap_value(raw)
        _append(values, descriptors, value, override or UNKNOWN_DESCRIPTOR, config)
    return BuiltParameters(values, descriptors)


def _supplied_names(source: Any) -> "Optional[set[str]]":
    """Names a countable source supplies, or None when the source cannot enumerate them."""
    if isinstance(source, Mapping):
        return set(source)
    values = getattr(source, "values", None)
    if isinstance(values, Mapping):
        return set(values)
    return None


def build_values_and_descriptors(
    statement: StatementInput, source: Any = None, config: "Optional[ParameterConfig]" = None
) -> BuiltParameters:
    """Resolve every occurrence of ``statement`` against ``source``.

    Named statements resolve by name from a mapping, value source or record.
    Statements using only anonymous ``?`` resolve by position from a sequence.
    A name that occurs more than once is resolved once and reused.

    Args:
        statement: SQL text or scanned statement.
        source: Mapping, value source, record, or positional sequence.
        config: Builder policy.

    Raises:
        MixedParameterStyleError: If the statement mixes ``?`` with named placeholders.
        ArityMismatchError: If the supplied values do not match the placeholders.
        MissingParameterValueError: If a named occurrence has no value.

    Returns:
        Values and descriptors aligned with the rendered placeholders.
    """
    config = config or DEFAULT_PARAMETER_CONFIG
    parsed = _parsed(statement, config)
    if parsed.has_mixed_styles:
        raise MixedParameterStyleError(parsed.named_parameter_count, parsed.anonymous_parameter_count, parsed.sql)

    if _is_positional(source):
        if parsed.named_parameter_count:
            msg = f"Given positional values but statement declares {parsed.named_parameter_count} named parameter(s)"
            raise ArityMismatchError(msg, parsed.sql, expected=parsed.named_parameter_count, given=0)
        return _build_positional(parsed, source, config)

    if parsed.is_anonymous_only:
        msg = f"Statement declares {parsed.total_parameter_count} positional parameter(s); supply a sequence"
        raise ArityMismatchError(msg, parsed.sql, expected=parsed.total_parameter_count, given=0)

    if config.reject_extra_values:
        supplied = _supplied_names(source)
        if supplied is not None and len(supplied) != parsed.named_parameter_count:
            msg = f"Given {len(supplied)} named value(s) but statement declares {parsed.named_parameter_count}"
            raise ArityMismatchError(msg, parsed.sql, expected=parsed.named_parameter_count, given=len(supplied))

    value_source: ValueSourceProtocol = as_value_source(source) or EmptyValueSource()
    resolved: dict[str, tuple[Any, ParameterDescriptor]] = {}
    values: list[Any] = []
    descriptors: list[ParameterDescriptor] = []
    for occurrence in parsed.occurrences:
        name = occurrence.name
        if name is None:
            continue
        if name not in resolved:
            if not value_source.has_value(name):
                raise MissingParameterValueError(name, parsed.sql)
            resolved[name] = resolve_parameter(value_source, name)
        value, descriptor = resolved[name]
        _append(values, descriptors, value, descriptor, config)

    logger.debug(
        "Built %d value(s) for %d occurrence(s)",
        len(values),
        parsed.total_parameter_count,
        extra=statement_extra(parsed.sql, values=len(values), occurrences=parsed.total_parameter_count),
    )
    return BuiltParameters(values, descriptors)


def build_values(
    statement: StatementInput, source: Any = None, config: "Optional[ParameterConfig]" = None
) -> "list[Any]":
    """Ordered values for the final placeholders of ``statement``."""
    return build_values_and_descriptors(statement, source, config).values


def build_types(
    statement: StatementInput, source: Any = None, config: "Optional[ParameterConfig]" = None
) -> "list[SqlTypeCode]":
    """Ordered type codes for the final placeholders of ``statement``."""
    return build_values_and_descriptors(statement, source, config).types


def build_type_names(
    statement: StatementInput, source: Any = None, config: "Optional[ParameterConfig]" = None
) -> "list[Optional[str]]":
    return build_values_and_descriptors(statement, source, config).type_names


def build_descriptors(
    statement: StatementInput, source: Any = None, config: "Optional[ParameterConfig]" = None
) -> "list[ParameterDescriptor]":
    """Ordered descriptors for the final placeholders of ``statement``."""
    return build_values_and_descriptors(statement, source, config).descriptors
