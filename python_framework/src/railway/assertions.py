"""
pytest helpers for Result values.

Each helper fails with a message that shows the other track's content,
so a red test says *why* the Result went the wrong way.

    parts = ResultAssertions.assert_success(split_der_key(key))
    ResultAssertions.assert_failure(split_der_key(bad), ErrorCode.VALIDATION_ERROR)
    ResultAssertions.assert_failure_caused_by(split_der_key(bad), BadDerLength)
"""

from __future__ import annotations

from typing import TypeVar

from railway.failure import ErrorCode, FailureDescription
from railway.result import Result

T = TypeVar("T")


def _suffix(note: str) -> str:
    return f" ({note})" if note else ""


class ResultAssertions:
    """Assertions on the track and content of a Result."""

    @staticmethod
    def assert_success(result: Result[T], note: str = "") -> T:
        """Fail unless `result` is a Success; return its value."""
        if result.is_failure():
            err = result.error()
            raise AssertionError(
                f"Expected Success but got Failure({err.code.value}: {err.message!r}){_suffix(note)}"
            )
        return result.value()

    @staticmethod
    def assert_failure(
        result: Result[T],
        expected_code: ErrorCode | None = None,
        note: str = "",
    ) -> FailureDescription:
        """Fail unless `result` is a Failure (with `expected_code`, if given); return the error."""
        if result.is_success():
            raise AssertionError(f"Expected Failure but got Success({result.value()!r}){_suffix(note)}")
        err = result.error()
        if expected_code is not None and err.code is not expected_code:
            raise AssertionError(
                f"Expected error code {expected_code.value} "
                f"but got {err.code.value}: {err.message!r}{_suffix(note)}"
            )
        return err

    @staticmethod
    def assert_failure_caused_by(
        result: Result[T],
        exception_type: type[BaseException],
    ) -> BaseException:
        """Fail unless the failure carries an `exception_type` instance; return it."""
        err = ResultAssertions.assert_failure(result)
        if not isinstance(err.exception, exception_type):
            raise AssertionError(
                f"Expected failure caused by {exception_type.__name__} "
                f"but got {type(err.exception).__name__}: {err.message!r}"
            )
        return err.exception

    @staticmethod
    def assert_failure_message_contains(result: Result[T], fragment: str) -> None:
        """Case-insensitive substring check on the failure message."""
        err = ResultAssertions.assert_failure(result)
        if fragment.lower() not in err.message.lower():
            raise AssertionError(
                f"Expected failure message to contain {fragment!r} but message was: {err.message!r}"
            )
