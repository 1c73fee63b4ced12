"""Generic Result type for explicit handling of expected failures."""

from typing import Final, Generic, TypeVar, cast

ValueT = TypeVar("ValueT")
ErrorT = TypeVar("ErrorT", bound=BaseException)

_MISSING: Final = object()


class Result(Generic[ValueT, ErrorT]):
    """
    Outcome of an operation whose failure is part of normal business flow.

    A member typing an impossible reading is expected, not exceptional, so
    record checks hand back either their value or the error instead of
    raising. The Ok value may itself be None or empty (no previous record,
    no anomaly flags); only the error decides which side a Result is on.
    """

    def __init__(self, value: object = _MISSING, error: ErrorT | None = None) -> None:
        has_value = value is not _MISSING
        if has_value and error is not None:
            raise ValueError("Result cannot have both value and error")
        if not has_value and error is None:
            raise ValueError("Result must have either value or error")
        self._value = value
        self._error = error

    def __repr__(self) -> str:
        if self._error is not None:
            return f"Result.err({self._error!r})"
        return f"Result.ok({self._value!r})"

    @classmethod
    def ok(cls, value: ValueT) -> "Result[ValueT, ErrorT]":
        return cls(value=value)

    @classmethod
    def err(cls, error: ErrorT) -> "Result[ValueT, ErrorT]":
        return cls(error=error)

    def is_ok(self) -> bool:
        return self._error is None

    def is_err(self) -> bool:
        return self._error is not None

    def unwrap(self) -> ValueT:
        """Return the value, or raise the carried error."""
        if self._error is not None:
            raise self._error
        return cast(ValueT, self._value)

    def unwrap_or(self, default: ValueT) -> ValueT:
        return default if self._error is not None else cast(ValueT, self._value)

    def unwrap_err(self) -> ErrorT:
        if self._error is None:
            raise ValueError("Called unwrap_err() on an Ok value")
        return self._error
