"""
Result monad — the core of Railway-Oriented Programming.

A Result[T] is either Success(value: T) or Failure(error: FailureDescription).
Adapters convert exceptions into failures at their boundary; everything above
them chains Results and lets the first failure short-circuit the rest:

    has_ca? ──no──► get_ca ─► store_ca ─► ... ─► store_chain ──► Result[T]
                      │          │                   │
                      └─ Failure ┴───────────────────┴──────────► Result[T]

Only `either` inspects which track a Result is on; every other operator is
expressed through it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, TypeVar

from railway.failure import ErrorCode, FailureDescription

T = TypeVar("T")
U = TypeVar("U")
R = TypeVar("R")


def _raise(error: BaseException) -> Any:
    raise error


class Result(Generic[T]):
    """
    Railway-Oriented Programming Result monad.

        >>> Result.success(21).map(lambda x: x * 2).value()
        42
        >>> Result.failure(ErrorCode.NOT_FOUND, "gone").map(lambda x: x * 2).is_failure()
        True
    """

    # ─────────────── Track dispatch ───────────────

    def either(
        self,
        on_success: Callable[[T], R],
        on_failure: Callable[[FailureDescription], R],
    ) -> R:
        """Apply `on_success` to the value or `on_failure` to the error."""
        match self:
            case Success(value):
                return on_success(value)
            case Failure(error):
                return on_failure(error)
        raise TypeError(f"{type(self).__name__} is neither Success nor Failure")

    def is_success(self) -> bool:
        return self.either(lambda _: True, lambda _: False)

    def is_failure(self) -> bool:
        return not self.is_success()

    def value(self) -> T:
        """The success value; ValueError on the failure track."""
        return self.either(
            lambda v: v,
            lambda err: _raise(ValueError(f"Cannot get value from a Failure: {err.message}")),
        )

    def error(self) -> FailureDescription:
        """The failure description; ValueError on the success track."""
        return self.either(
            lambda v: _raise(ValueError(f"Cannot get error from a Success: {v}")),
            lambda err: err,
        )

    # ─────────────── Chaining ───────────────

    def flat_map(self, mapper: Callable[[T], Result[U]]) -> Result[U]:
        """
        Chain a Result-returning step; a failure skips it.

        This is the operator that connects the stages of a provisioning cycle:

            storage.get_ca().flat_map(lambda ca: repository.get_certificates(ca.fingerprint))
        """
        return self.either(mapper, Failure)

    def map(self, mapper: Callable[[T], U]) -> Result[U]:
        """Transform the success value; a failure passes through unchanged."""
        return self.flat_map(lambda v: Success(mapper(v)))

    def peek(self, action: Callable[[T], Any]) -> Result[T]:
        """Run a side effect (logging) on the success value and return self."""
        self.either(action, lambda _: None)
        return self

    def peek_failure(self, action: Callable[[FailureDescription], Any]) -> Result[T]:
        """Run a side effect on the failure description and return self."""
        self.either(lambda _: None, action)
        return self

    def get_or_else(self, default: T) -> T:
        return self.either(lambda v: v, lambda _: default)

    # ─────────────── Factories ───────────────

    @staticmethod
    def success(value: T) -> Result[T]:
        return Success(value)

    @staticmethod
    def failure(
        code: ErrorCode,
        message: str,
        exception: Optional[BaseException] = None,
    ) -> Result[T]:
        """
        Failed Result with code, message and the originating exception, if any.

            Result.failure(ErrorCode.STORAGE_ERROR, "Writing ca.crt failed", exc)
        """
        return Failure(FailureDescription(code=code, message=message, exception=exception))

    @staticmethod
    def from_computation(
        computation: Callable[[], T],
        error_code: ErrorCode,
        error_message: str,
    ) -> Result[T]:
        """
        Run `computation`; a raised exception becomes a failure with `error_code`.

        Adapters use this at the I/O boundary:

            return Result.from_computation(
                path.read_bytes,
                ErrorCode.STORAGE_ERROR,
                f"Reading {path} failed",
            )

        A computation returning None also fails, since Success cannot hold None.
        """
        try:
            return Success(computation())
        except Exception as e:
            return Result.failure(error_code, error_message, e)

    @staticmethod
    def from_optional(
        value: Optional[T],
        error_message: str,
        error_code: ErrorCode = ErrorCode.NOT_FOUND,
    ) -> Result[T]:
        """Success for a present value, failure (NOT_FOUND by default) for None."""
        if value is None:
            return Result.failure(error_code, error_message)
        return Success(value)

    # ─────────────── Protocol methods ───────────────

    def __bool__(self) -> bool:
        return self.is_success()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Result):
            return NotImplemented
        return self._identity() == other._identity()

    def __hash__(self) -> int:
        return hash(self._identity())

    def __repr__(self) -> str:
        return self.either(
            lambda v: f"Success({v!r})",
            lambda err: f"Failure({err.code.value}: {err.message!r})",
        )

    def _identity(self) -> tuple[Any, ...]:
        # Failures compare by code and message; timestamp and exception are ignored.
        return self.either(
            lambda v: ("Success", v),
            lambda err: ("Failure", err.code, err.message),
        )


@dataclass(frozen=True, slots=True, eq=False, repr=False)
class Success(Result[T]):
    """The success track, wrapping a value of type T."""

    _value: T

    def __init__(self, value: T) -> None:
        if value is None:
            raise TypeError("Success value must not be None")
        object.__setattr__(self, "_value", value)


@dataclass(frozen=True, slots=True, eq=False, repr=False)
class Failure(Result[T]):
    """The failure track, wrapping a FailureDescription."""

    _error: FailureDescription

    def __init__(self, error: FailureDescription) -> None:
        if error is None:
            raise TypeError("Failure error must not be None")
        object.__setattr__(self, "_error", error)


# Structural pattern matching: `case Success(value)` / `case Failure(error)`
Success.__match_args__ = ("_value",)
Failure.__match_args__ = ("_error",)
