"""Outcome of an engine command: a snapshot, or the reason the command was refused."""

from typing import Generic, TypeVar

ValueT = TypeVar("ValueT")
ErrorT = TypeVar("ErrorT", bound=BaseException)


class Result(Generic[ValueT, ErrorT]):
    """
    Explicit error handling without exceptions for expected failures.

    Commands issued before a session is started are expected misuse: the
    presentation layer checks is_err() instead of catching. unwrap() re-raises
    the stored error for callers that prefer exceptions.
    """

    def __init__(self, value: ValueT | None = None, error: ErrorT | None = None) -> None:
        if (value is None) == (error is None):
            raise ValueError("Result must hold exactly one of value or error")
        self._value = value
        self._error = error

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
        if self._error is not None:
            raise self._error
        return self._value  # type: ignore[return-value]

    def unwrap_err(self) -> ErrorT:
        if self._error is None:
            raise ValueError("Called unwrap_err() on an Ok value")
        return self._error
