"""sqlbind core - placeholder scanning, rendering and binding.

Architecture Overview:
- scanner.py: Single-pass scan of named and anonymous placeholders
- types.py: Parsed statements, descriptors and typed values
- substitution.py: Rendering with collection expansion
- builder.py: Value and type arrays aligned with the final placeholders
- binder.py: Positional binding onto statement handles, with disposal
- cache.py: LRU cache of parsed statements
- factory.py: Statement factories tying SQL, declarations and options together
"""

from sqlbind.core.binder import BoundParameterList, ParameterBinder, bind, bound_parameters, dispose
from sqlbind.core.builder import (
    build_descriptors,
    build_type_names,
    build_types,
    build_values,
    build_values_and_descriptors,
)
from sqlbind.core.cache import CacheStats, ParsedStatementCache, get_default_cache, parse_cached
from sqlbind.core.config import ParameterConfig, StatementOptions
from sqlbind.core.factory import PreparedStatementCreator, PreparedStatementFactory
from sqlbind.core.scanner import scan
from sqlbind.core.sources import EmptyValueSource, MapValueSource, RecordValueSource, as_value_source
from sqlbind.core.substitution import render
from sqlbind.core.types import (
    BuiltParameters,
    ParameterDescriptor,
    ParameterOccurrence,
    ParsedStatement,
    SqlType,
    TypedValue,
    is_array_type,
)

__all__ = (
    "BoundParameterList",
    "BuiltParameters",
    "CacheStats",
    "EmptyValueSource",
    "MapValueSource",
    "ParameterBinder",
    "ParameterConfig",
    "ParameterDescriptor",
    "ParameterOccurrence",
    "ParsedStatement",
    "ParsedStatementCache",
    "PreparedStatementCreator",
    "PreparedStatementFactory",
    "RecordValueSource",
    "SqlType",
    "StatementOptions",
    "TypedValue",
    "as_value_source",
    "bind",
    "bound_parameters",
    "build_descriptors",
    "build_type_names",
    "build_types",
    "build_values",
    "build_values_and_descriptors",
    "dispose",
    "get_default_cache",
    "is_array_type",
    "parse_cached",
    "render",
    "scan",
)
