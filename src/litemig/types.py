"""Core type definitions for litemig."""

import functools
import logging
from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, TypeAlias, TypeVar

from litemig.exceptions import LitemigError

Version: TypeAlias = str

__all__ = [
    "Version",
    "Result",
    "returns_result",
]

T = TypeVar("T")

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Result(Generic[T]):
    """Outcome of a public engine operation.

    Exactly one of ``value`` and ``error`` is meaningful: a failed result
    carries a ``LitemigError`` instance, a successful one carries the value
    (which may itself be ``None``).
    """

    value: Optional[T] = None
    error: Optional[LitemigError] = None

    @classmethod
    def ok(cls, value: Optional[T] = None) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def fail(cls, error: LitemigError) -> "Result[T]":
        if not isinstance(error, LitemigError):
            raise TypeError(
                f"error must be a LitemigError, got {type(error).__name__}"
            )
        return cls(error=error)

    @property
    def is_error(self) -> bool:
        return self.error is not None

    @property
    def is_ok(self) -> bool:
        return self.error is None

    @property
    def message(self) -> str:
        return str(self.error) if self.error is not None else ""

    def unwrap(self) -> T:
        """Return the value, or raise the carried error."""
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]


def returns_result(
    error_cls: type[LitemigError], context: str
) -> Callable[[Callable[..., Any]], Callable[..., Result[Any]]]:
    """Convert exceptions raised by the wrapped operation into a failed Result.

    ``LitemigError`` instances are carried as-is. Any other ``Exception`` is
    wrapped in ``error_cls`` with ``context`` as the message prefix. The
    wrapped function returns the plain value on success.
    """

    def decorator(func: Callable[..., Any]) -> Callable[..., Result[Any]]:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Result[Any]:
            try:
                return Result.ok(func(*args, **kwargs))
            except LitemigError as exc:
                return Result.fail(exc)
            except Exception as exc:
                logger.debug("%s", context, exc_info=True)
                error = error_cls(f"{context}: {exc}")
                error.__cause__ = exc
                return Result.fail(error)

        return wrapper

    return decorator
