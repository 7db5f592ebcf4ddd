"""
Railway-Oriented Programming (ROP) framework.

Explicit, composable error handling: adapters convert exceptions into
failures, business logic chains Results.

    from railway import Result, ErrorCode

    def require_pem(data: bytes) -> Result[bytes]:
        if not data.startswith(b"-----BEGIN"):
            return Result.failure(ErrorCode.CRYPTO_ERROR, "Not a PEM document")
        return Result.success(data)

    result = Result.success(raw).flat_map(require_pem).map(len)
"""

from railway.result import Result, Success, Failure
from railway.failure import ErrorCode, FailureDescription
from railway.execution import (
    ExecutionContext,
    NoOpExecutionContext,
    LoggingExecutionContext,
)
from railway.result_failures import ResultFailures
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
    "ResultFailures",
    "ResultAssertions",
]

__version__ = "1.1.0"
