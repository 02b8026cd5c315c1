from collections.abc import Generator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from sqlbind.core.types import ParameterDescriptor

__all__ = (
    "ArityMismatchError",
    "DriverBindingError",
    "ImproperConfigurationError",
    "MissingParameterValueError",
    "MixedParameterStyleError",
    "ParameterError",
    "ParameterSyntaxError",
    "SQLBindError",
    "UnsupportedCollectionExpansionError",
    "wrap_driver_exceptions",
)


class SQLBindError(Exception):
    """Base exception class from which all sqlbind exceptions inherit."""

    detail: str

    def __init__(self, *args: Any, detail: str = "") -> None:
        """Initialize ``SQLBindError``.

        Args:
            *args: args are converted to :class:`str` before passing to :class:`Exception`
            detail: detail of the exception.
        """
        str_args = [str(arg) for arg in args if arg]
        if not detail:
            if str_args:
                detail, *str_args = str_args
            elif hasattr(self, "detail"):
                detail = self.detail
        self.detail = detail
        super().__init__(*str_args)

    def __repr__(self) -> str:
        if self.detail:
            return f"{self.__class__.__name__} - {self.detail}"
        return self.__class__.__name__

    def __str__(self) -> str:
        return " ".join((*self.args, self.detail)).strip()


class ImproperConfigurationError(SQLBindError):
    """A configuration record was built with values it cannot honour."""


# -- Parameter Errors --
class ParameterError(SQLBindError):
    """Base class for parameter-related errors."""

    sql: Optional[str]

    def __init__(self, message: str, sql: Optional[str] = None) -> None:
        """Initialize with optional SQL context."""
        detail_message = message
        if sql:
            detail_message = f"{message}\nSQL: {sql}"
        super().__init__(detail=detail_message)
        self.sql = sql


class ParameterSyntaxError(ParameterError):
    """Raised when a placeholder declaration cannot be classified (e.g. ``:{name`` never closed)."""


class ArityMismatchError(ParameterError):
    """Raised when the declared parameter count and the supplied value count disagree."""

    def __init__(self, message: str, sql: Optional[str] = None, expected: int = 0, given: int = 0) -> None:
        super().__init__(message, sql)
        self.expected = expected
        self.given = given


class MissingParameterValueError(ParameterError):
    """Raised when a named placeholder has no value in the value source."""

    def __init__(self, name: str, sql: Optional[str] = None) -> None:
        super().__init__(f"No value supplied for the SQL parameter {name!r}", sql)
        self.name = name


class MixedParameterStyleError(ParameterError):
    """Raised when anonymous ``?`` and named placeholders coexist where names must be resolved."""

    def __init__(self, named_count: int, anonymous_count: int, sql: Optional[str] = None) -> None:
        super().__init__(
            "Not allowed to mix named and traditional ? placeholders. "
            f"You have {named_count} named parameter(s) and {anonymous_count} traditional placeholder(s)",
            sql,
        )
        self.named_count = named_count
        self.anonymous_count = anonymous_count


class UnsupportedCollectionExpansionError(ParameterError):
    """Raised when a caller demands expansion of a container declared with the array type."""


class DriverBindingError(SQLBindError):
    """The statement handle rejected a positional value."""

    def __init__(
        self, message: str, index: Optional[int] = None, descriptor: "Optional[ParameterDescriptor]" = None
    ) -> None:
        super().__init__(detail=message)
        self.index = index
        self.descriptor = descriptor


@contextmanager
def wrap_driver_exceptions(
    index: int, descriptor: "Optional[ParameterDescriptor]" = None
) -> Generator[None, None, None]:
    """Re-raise any driver exception raised inside the block as :class:`DriverBindingError`.

    Args:
        index: 1-based positional slot being bound.
        descriptor: Descriptor governing the slot.

    Raises:
        DriverBindingError: Wrapping the original exception as ``__cause__``.
    """
    try:
        yield
    except SQLBindError:
        raise
    except Exception as exc:
        msg = f"Driver rejected value for parameter #{index}: {exc}"
        raise DriverBindingError(msg, index=index, descriptor=descriptor) from exc
