"""
Execution contexts — run a Result-returning computation inside a wrapper.

The computation stays pure: it only describes the work and returns a
Result. The context decides how the work is run and observed (timing,
logging, turning a stray exception into a failure).

    ctx = LoggingExecutionContext(operation="RevocationAudit")
    result = ctx.execute(lambda: run_audit(store, feeds))
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Protocol, TypeVar, runtime_checkable

from railway.failure import ErrorCode, FailureDescription
from railway.result import Failure, Result

T = TypeVar("T")
logger = logging.getLogger("railway.execution")


@runtime_checkable
class ExecutionContext(Protocol):
    """Anything with `execute(computation) -> Result` is a context."""

    def execute(self, computation: Callable[[], Result[T]]) -> Result[T]:
        ...


class NoOpExecutionContext:
    """Runs the computation as is."""

    def execute(self, computation: Callable[[], Result[T]]) -> Result[T]:
        return computation()


class LoggingExecutionContext:
    """
    Log start, outcome and duration of a computation run through `inner`.

    A failure is logged with its error code. An exception escaping the
    computation becomes a TECHNICAL_ERROR failure, so `execute` never raises.
    """

    def __init__(
        self,
        inner: ExecutionContext | None = None,
        operation: str = "unknown",
        log_level: int = logging.INFO,
        log: logging.Logger | None = None,
    ) -> None:
        self._inner = inner or NoOpExecutionContext()
        self._operation = operation
        self._log_level = log_level
        self._log = log or logger

    def execute(self, computation: Callable[[], Result[T]]) -> Result[T]:
        self._log.log(self._log_level, "[%s] started", self._operation)
        started = time.monotonic()
        try:
            result = self._inner.execute(computation)
        except Exception as e:
            self._log.error(
                "[%s] raised after %.3fs: %s", self._operation, time.monotonic() - started, e
            )
            return Failure(FailureDescription(ErrorCode.TECHNICAL_ERROR, f"Execution failed: {e}", e))

        elapsed = time.monotonic() - started
        if result.is_success():
            self._log.log(self._log_level, "[%s] SUCCESS in %.3fs", self._operation, elapsed)
        else:
            self._log.log(
                self._log_level,
                "[%s] FAILURE in %.3fs (%s)",
                self._operation,
                elapsed,
                result.error().code.value,
            )
        return result
