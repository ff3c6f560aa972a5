"""
railway — two-track error handling.

Fallible steps return a Result instead of raising; chains of steps stop
at the first failure and hand it to whoever reads the outcome.

    from railway import ErrorCode, Result

    def require_prefix(key: bytes) -> Result[bytes]:
        if not key.startswith(b"is"):
            return Result.failure(ErrorCode.VALIDATION_ERROR, "unexpected key prefix")
        return Result.success(key[2:])

    result = (
        Result.success(b"is\\x30\\x00\\x02\\x01\\x01")
        .flat_map(require_prefix)
        .map(len)
    )
"""

from railway.result import Result, Success, Failure
from railway.failure import ErrorCode, FailureDescription
from railway.execution import (
    ExecutionContext,
    NoOpExecutionContext,
    LoggingExecutionContext,
)
from railway.assertions import ResultAssertions

__all__ = [
    "Result",
    "Success",
    "Failure",
    "ErrorCode",
    "FailureDescription",
    "ExecutionContext",
    "NoOpExecutionContext",
    "LoggingExecutionContext",
    "ResultAssertions",
]

__version__ = "1.1.0"
