"""Immutable configuration records."""

from typing import Any, Final, Literal, Optional

from mypy_extensions import mypyc_attr

from sqlbind.exceptions import ImproperConfigurationError

__all__ = ("DEFAULT_PARAMETER_CONFIG", "ParameterConfig", "ResultSetType", "StatementOptions")

EmptyCollectionPolicy = Literal["placeholder", "null"]
ResultSetType = Literal["forward_only", "scroll_insensitive", "scroll_sensitive"]

_EMPTY_COLLECTION_POLICIES: Final = frozenset({"placeholder", "null"})
_RESULT_SET_TYPES: Final = frozenset({"forward_only", "scroll_insensitive", "scroll_sensitive"})


@mypyc_attr(allow_interpreted_subclasses=False)
class ParameterConfig:
    """Declarative policy for scanning, rendering and value building."""

    __slots__ = (
        "allow_mixed_parameter_styles",
        "empty_collection",
        "expansion_separator",
        "reject_extra_values",
        "skip_qmark_operators",
        "strip_escape_backslash",
    )

    def __init__(
        self,
        strip_escape_backslash: bool = False,
        allow_mixed_parameter_styles: bool = True,
        expansion_separator: str = ", ",
        empty_collection: EmptyCollectionPolicy = "placeholder",
        reject_extra_values: bool = False,
        skip_qmark_operators: bool = False,
    ) -> None:
        """Initialize parameter configuration.

        Args:
            strip_escape_backslash: Drop the backslash of ``\\:`` when rendering
            allow_mixed_parameter_styles: Let ``render`` accept ``?`` mixed with named placeholders
            expansion_separator: Text placed between placeholders of an expanded collection
            empty_collection: Render an empty collection as one ``?`` or as ``NULL``
            reject_extra_values: Fail when a mapping supplies names the statement never uses
            skip_qmark_operators: Scan ``??``, ``?|`` and ``?&`` as PostgreSQL operators, not placeholders

        Raises:
            ImproperConfigurationError: If ``empty_collection`` is not a known policy.
        """
        if empty_collection not in _EMPTY_COLLECTION_POLICIES:
            msg = f"empty_collection must be one of {sorted(_EMPTY_COLLECTION_POLICIES)}, got {empty_collection!r}"
            raise ImproperConfigurationError(msg)
        self.strip_escape_backslash = strip_escape_backslash
        self.allow_mixed_parameter_styles = allow_mixed_parameter_styles
        self.expansion_separator = expansion_separator
        self.empty_collection = empty_collection
        self.reject_extra_values = reject_extra_values
        self.skip_qmark_operators = skip_qmark_operators

    def replace(self, **changes: Any) -> "ParameterConfig":
        """Return a copy with the given fields changed."""
        values = {name: getattr(self, name) for name in self.__slots__}
        values.update(changes)
        return ParameterConfig(**values)

    def hash(self) -> int:
        """Deterministic hash used in cache keys."""
        return hash(
            (
                self.strip_escape_backslash,
                self.allow_mixed_parameter_styles,
                self.expansion_separator,
                self.empty_collection,
                self.reject_extra_values,
                self.skip_qmark_operators,
            )
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ParameterConfig):
            return False
        return self.hash() == other.hash()

    def __hash__(self) -> int:
        return self.hash()

    def __repr__(self) -> str:
        fields = ", ".join(f"{name}={getattr(self, name)!r}" for name in sorted(self.__slots__))
        return f"ParameterConfig({fields})"


DEFAULT_PARAMETER_CONFIG: Final = ParameterConfig()


@mypyc_attr(allow_interpreted_subclasses=False)
class StatementOptions:
    """Options handed to ``ConnectionProtocol.prepare`` alongside the SQL."""

    __slots__ = ("generated_key_columns", "result_set_type", "return_generated_keys", "updatable_results")

    def __init__(
        self,
        result_set_type: ResultSetType = "forward_only",
        updatable_results: bool = False,
        return_generated_keys: bool = False,
        generated_key_columns: "Optional[tuple[str, ...]]" = None,
    ) -> None:
        if result_set_type not in _RESULT_SET_TYPES:
            msg = f"result_set_type must be one of {sorted(_RESULT_SET_TYPES)}, got {result_set_type!r}"
            raise ImproperConfigurationError(msg)
        self.result_set_type = result_set_type
        self.updatable_results = updatable_results
        self.return_generated_keys = return_generated_keys
        self.generated_key_columns = tuple(generated_key_columns) if generated_key_columns is not None else None

    @property
    def wants_generated_keys(self) -> bool:
        return self.return_generated_keys or self.generated_key_columns is not None

    @property
    def is_default(self) -> bool:
        """True for a plain forward-only, read-only statement without key retrieval."""
        return self.result_set_type == "forward_only" and not self.updatable_results and not self.wants_generated_keys

    def replace(self, **changes: Any) -> "StatementOptions":
        values = {name: getattr(self, name) for name in self.__slots__}
        values.update(changes)
        return StatementOptions(**values)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, StatementOptions):
            return False
        return all(getattr(self, name) == getattr(other, name) for name in self.__slots__)

    def __hash__(self) -> int:
        return hash(tuple(getattr(self, name) for name in self.__slots__))

    def __repr__(self) -> str:
        fields = ", ".join(f"{name}={getattr(self, name)!r}" for name in sorted(self.__slots__))
        return f"StatementOptions({fields})"
