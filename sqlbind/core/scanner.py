"""Single-pass placeholder scanner.

Walks the SQL text once, copying quoted literals and comments through
untouched and replacing every named placeholder (``:name``, ``&name``,
``:{name}``) with ``?``. Anonymous ``?`` markers already present in the text
are recorded as unnamed occurrences.

Recognised look-alikes that are never placeholders:

- ``\\:`` escaped colon
- ``::`` type cast
- ``:=`` assignment
- ``&&`` logical and
- ``:{}`` empty brackets
- ``??``, ``?|`` and ``?&`` PostgreSQL JSON operators, when
  ``skip_qmark_operators`` is set (``?||`` stays a placeholder followed by
  string concatenation)
"""

from typing import Final, Optional

from sqlbind.core.types import ParameterOccurrence, ParsedStatement
from sqlbind.exceptions import ParameterSyntaxError

__all__ = ("is_identifier_char", "scan")

_QUOTES: Final = frozenset({"'", '"'})
_PREFIXES: Final = frozenset({":", "&"})
_QMARK_OPERATOR_SUFFIXES: Final = frozenset({"?", "|", "&"})


def is_identifier_char(char: str) -> bool:
    return char.isalnum() or char == "_"


def _skip_quoted(sql: str, start: int, quote: str) -> int:
    """Return the index just past the literal opened at ``start``.

    A doubled quote inside the literal is an escaped quote. An unterminated
    literal runs to the end of the text.
    """
    length = len(sql)
    index = start + 1
    while True:
        close = sql.find(quote, index)
        if close == -1:
            return length
        if close + 1 < length and sql[close + 1] == quote:
            index = close + 2
            continue
        return close + 1


def _is_qmark_operator(sql: str, index: int) -> bool:
    suffix = sql[index + 1 : index + 2]
    return suffix in _QMARK_OPERATOR_SUFFIXES and sql[index + 1 : index + 3] != "||"


def _skip_line_comment(sql: str, start: int) -> int:
    newline = sql.find("\n", start + 2)
    return len(sql) if newline == -1 else newline + 1


def _skip_block_comment(sql: str, start: int) -> int:
    close = sql.find("*/", start + 2)
    return len(sql) if close == -1 else close + 2


def scan(sql: str, skip_qmark_operators: bool = False) -> ParsedStatement:
    """Locate the placeholders of ``sql`` and build its canonical ``?`` form.

    Args:
        sql: Raw SQL text with named and/or anonymous placeholders.
        skip_qmark_operators: Treat ``??``, ``?|`` and ``?&`` as operators, not placeholders.

    Raises:
        ParameterSyntaxError: If a ``:{`` bracket name is never closed.

    Returns:
        The parsed statement.
    """
    length = len(sql)
    chunks: list[str] = []
    emitted = 0
    copy_from = 0
    occurrences: list[ParameterOccurrence] = []
    escape_positions: list[int] = []

    def replace(name: "Optional[str]", start: int, end: int) -> None:
        nonlocal emitted, copy_from
        literal = sql[copy_from:start]
        chunks.append(literal)
        emitted += len(literal)
        occurrences.append(ParameterOccurrence(name, start, end, emitted, len(occurrences)))
        chunks.append("?")
        emitted += 1
        copy_from = end

    index = 0
    while index < length:
        char = sql[index]
        nxt = sql[index + 1] if index + 1 < length else ""

        if char in _QUOTES:
            index = _skip_quoted(sql, index, char)
        elif char == "-" and nxt == "-":
            index = _skip_line_comment(sql, index)
        elif char == "/" and nxt == "*":
            index = _skip_block_comment(sql, index)
        elif char == "\\" and nxt == ":":
            escape_positions.append(emitted + index - copy_from)
            index += 2
        elif char == "?" and skip_qmark_operators and _is_qmark_operator(sql, index):
            index += 2
        elif char == "?":
            # already canonical, recorded in place
            position = emitted + index - copy_from
            occurrences.append(ParameterOccurrence(None, index, index + 1, position, len(occurrences)))
            index += 1
        elif char in _PREFIXES:
            if nxt == char:
                index += 2
            elif char == ":" and nxt == "{":
                close = sql.find("}", index + 2)
                if close == -1:
                    msg = f"Non-terminated named parameter declaration at position {index}"
                    raise ParameterSyntaxError(msg, sql)
                name = sql[index + 2 : close]
                if name:
                    replace(name, index, close + 1)
                index = close + 1
            elif nxt and is_identifier_char(nxt):
                end = index + 2
                while end < length and is_identifier_char(sql[end]):
                    end += 1
                replace(sql[index + 1 : end], index, end)
                index = end
            else:
                index += 1
        else:
            index += 1

    chunks.append(sql[copy_from:])
    return ParsedStatement(sql, "".join(chunks), occurrences, escape_positions)
