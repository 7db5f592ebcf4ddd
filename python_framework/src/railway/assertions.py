"""
Test assertions for Result values.

    from railway import ResultAssertions

    def test_missing_ca():
        result = storage.get_ca()
        ResultAssertions.assert_failure(result, ErrorCode.NOT_FOUND)
"""

from __future__ import annotations

from typing import Any, TypeVar

from railway.failure import ErrorCode, FailureDescription
from railway.result import Result

T = TypeVar("T")


def _suffix(message: str) -> str:
    return f" - {message}" if message else ""


class ResultAssertions:
    """pytest-friendly assertions that explain which track a Result is on."""

    @staticmethod
    def assert_success(result: Result[T], message: str = "") -> T:
        """Fail unless `result` is a Success; return its value."""
        if result.is_failure():
            error = result.error()
            raise AssertionError(
                f"Expected Success but got Failure({error.code.value}: "
                f"{error.message!r}){_suffix(message)}"
            )
        return result.value()

    @staticmethod
    def assert_failure(
        result: Result[T],
        expected_code: ErrorCode | None = None,
        message: str = "",
    ) -> FailureDescription:
        """Fail unless `result` is a Failure (with `expected_code`, if given); return its error."""
        if result.is_success():
            raise AssertionError(
                f"Expected Failure but got Success({result.value()!r}){_suffix(message)}"
            )
        error = result.error()
        if expected_code is not None and error.code != expected_code:
            raise AssertionError(
                f"Expected error code {expected_code.value} but got "
                f"{error.code.value}: {error.message!r}{_suffix(message)}"
            )
        return error

    @staticmethod
    def assert_failure_message_contains(result: Result[T], substring: str) -> None:
        """Case-insensitive substring check on the failure message."""
        error = ResultAssertions.assert_failure(result)
        if substring.lower() not in error.message.lower():
            raise AssertionError(
                f"Expected failure message to contain {substring!r} "
                f"but message was: {error.message!r}"
            )

    @staticmethod
    def assert_success_value(result: Result[T], expected_value: Any) -> None:
        value = ResultAssertions.assert_success(result)
        if value != expected_value:
            raise AssertionError(f"Expected success value {expected_value!r} but got {value!r}")
