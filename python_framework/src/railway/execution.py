"""
Execution contexts — separate WHAT (the Result-returning computation) from
HOW it is run (timing, logging, exception containment).

    ctx = LoggingExecutionContext(operation="ContractProvisioning")
    result = ctx.execute(run_cycle)

A LoggingExecutionContext never lets an exception escape: anything raised by
the computation becomes a TECHNICAL_ERROR failure, so a periodic caller keeps
running.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Protocol, TypeVar, runtime_checkable

from railway.failure import ErrorCode
from railway.result import Result

T = TypeVar("T")
logger = logging.getLogger("railway.execution")


@runtime_checkable
class ExecutionContext(Protocol):
    """Anything with execute(computation) -> Result satisfies this protocol."""

    def execute(self, computation: Callable[[], Result[T]]) -> Result[T]: ...


class NoOpExecutionContext:
    """Runs the computation directly."""

    def execute(self, computation: Callable[[], Result[T]]) -> Result[T]:
        return computation()


class LoggingExecutionContext:
    """
    Log start, duration and outcome of every execution.

    Delegates the actual call to `inner`, so contexts can be stacked.
    """

    def __init__(
        self,
        inner: ExecutionContext | None = None,
        operation: str = "unknown",
        log_level: int = logging.INFO,
    ) -> None:
        self._inner = inner or NoOpExecutionContext()
        self._operation = operation
        self._log_level = log_level

    def execute(self, computation: Callable[[], Result[T]]) -> Result[T]:
        logger.log(self._log_level, "[%s] Starting execution", self._operation)
        started = time.monotonic()
        try:
            result = self._inner.execute(computation)
        except Exception as e:
            logger.error(
                "[%s] Execution failed after %.3fs: %s",
                self._operation,
                time.monotonic() - started,
                e,
            )
            return Result.failure(ErrorCode.TECHNICAL_ERROR, f"Execution failed: {e}", e)

        logger.log(
            self._log_level,
            "[%s] Completed in %.3fs - %s",
            self._operation,
            time.monotonic() - started,
            "SUCCESS" if result.is_success() else "FAILURE",
        )
        return result
