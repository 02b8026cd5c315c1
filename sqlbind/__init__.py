"""sqlbind: named SQL placeholders bound through anonymous ``?`` markers."""

from sqlbind import adapters, core, exceptions, protocols, utils
from sqlbind.__metadata__ import __version__
from sqlbind.core import (
    BoundParameterList,
    BuiltParameters,
    MapValueSource,
    ParameterBinder,
    ParameterConfig,
    ParameterDescriptor,
    ParsedStatement,
    PreparedStatementFactory,
    RecordValueSource,
    SqlType,
    StatementOptions,
    TypedValue,
    bind,
    bound_parameters,
    build_descriptors,
    build_type_names,
    build_types,
    build_values,
    build_values_and_descriptors,
    dispose,
    parse_cached,
    render,
    scan,
)
from sqlbind.exceptions import (
    ArityMismatchError,
    DriverBindingError,
    MissingParameterValueError,
    MixedParameterStyleError,
    ParameterError,
    ParameterSyntaxError,
    SQLBindError,
    UnsupportedCollectionExpansionError,
)

__all__ = (
    "ArityMismatchError",
    "BoundParameterList",
    "BuiltParameters",
    "DriverBindingError",
    "MapValueSource",
    "MissingParameterValueError",
    "MixedParameterStyleError",
    "ParameterBinder",
    "ParameterConfig",
    "ParameterDescriptor",
    "ParameterError",
    "ParameterSyntaxError",
    "ParsedStatement",
    "PreparedStatementFactory",
    "RecordValueSource",
    "SQLBindError",
    "SqlType",
    "StatementOptions",
    "TypedValue",
    "UnsupportedCollectionExpansionError",
    "__version__",
    "adapters",
    "bind",
    "bound_parameters",
    "build_descriptors",
    "build_type_names",
    "build_types",
    "build_values",
    "build_values_and_descriptors",
    "core",
    "dispose",
    "exceptions",
    "parse_cached",
    "protocols",
    "render",
    "scan",
    "utils",
)
