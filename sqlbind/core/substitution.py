"""Render a parsed statement to executable ``?`` SQL.

Example:
    Input:  "SELECT * FROM users WHERE id IN (:ids)", {"ids": [1, 2, 3]}
    Output: "SELECT * FROM users WHERE id IN (?, ?, ?)"
"""

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any, Optional, Union

from sqlbind.core.cache import parse_cached
from sqlbind.core.config import DEFAULT_PARAMETER_CONFIG
from sqlbind.core.sources import as_value_source, resolve_parameter
from sqlbind.core.types import ParsedStatement, is_expandable, unwrap_value
from sqlbind.exceptions import MixedParameterStyleError
from sqlbind.utils.logging import get_logger, statement_extra

if TYPE_CHECKING:
    from collections.abc import Collection

    from sqlbind.core.config import ParameterConfig

__all__ = ("placeholders_for", "render")

logger = get_logger("core.substitution")


def placeholders_for(value: "Collection[Any]", config: "ParameterConfig") -> str:
    """Placeholder text for an expanded collection.

    Each element takes one ``?``; a tuple element becomes a parenthesised
    group with one ``?`` per member.
    """
    if not value:
        return "NULL" if config.empty_collection == "null" else "?"
    separator = config.expansion_separator
    parts = [f"({separator.join('?' * len(entry))})" if isinstance(entry, tuple) else "?" for entry in value]
    return separator.join(parts)


def render(
    parsed: "Union[ParsedStatement, str]", source: Any = None, config: "Optional[ParameterConfig]" = None
) -> str:
    """Produce the final SQL for ``parsed``.

    Without a source every occurrence keeps its single ``?``. With a source,
    an occurrence whose value is a collection (and whose type is not the
    array type) is expanded to one placeholder per element. A statement using
    only anonymous ``?`` markers takes its values by position from a sequence.

    Args:
        parsed: Scanned statement, or SQL text scanned through the default cache.
        source: Value source, mapping, record, or positional sequence.
        config: Rendering policy.

    Raises:
        MixedParameterStyleError: If the statement mixes ``?`` with named
            placeholders and the config forbids it.

    Returns:
        Executable SQL text.
    """
    config = config or DEFAULT_PARAMETER_CONFIG
    if not isinstance(parsed, ParsedStatement):
        parsed = parse_cached(parsed, config)
    if parsed.has_mixed_styles and not config.allow_mixed_parameter_styles:
        raise MixedParameterStyleError(parsed.named_parameter_count, parsed.anonymous_parameter_count, parsed.sql)

    positional = isinstance(source, Sequence) and not isinstance(source, (str, bytes, bytearray))
    value_source = None if positional else as_value_source(source)
    edits: list[tuple[int, str]] = []
    if config.strip_escape_backslash:
        edits.extend((position, "") for position in parsed.escape_positions)

    if positional and parsed.is_anonymous_only:
        for occurrence in parsed.occurrences[: len(source)]:
            value, descriptor = unwrap_value(source[occurrence.ordinal])
            if is_expandable(value, descriptor):
                edits.append((occurrence.position, placeholders_for(value, config)))
    elif value_source is not None:
        for occurrence in parsed.occurrences:
            name = occurrence.name
            if name is None or not value_source.has_value(name):
                continue
            value, descriptor = resolve_parameter(value_source, name)
            if is_expandable(value, descriptor):
                edits.append((occurrence.position, placeholders_for(value, config)))

    if not edits:
        return parsed.canonical_sql

    edits.sort(key=lambda edit: edit[0])
    canonical = parsed.canonical_sql
    chunks: list[str] = []
    copy_from = 0
    for position, replacement in edits:
        chunks.append(canonical[copy_from:position])
        chunks.append(replacement)
        copy_from = position + 1
    chunks.append(canonical[copy_from:])
    rendered = "".join(chunks)
    logger.debug("Rendered %d placeholder edit(s)", len(edits), extra=statement_extra(rendered, edits=len(edits)))
    return rendered
