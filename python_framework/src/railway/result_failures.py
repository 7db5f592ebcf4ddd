"""
Convenience factory methods for the failures the storage adapters produce.

    from railway.result_failures import ResultFailures

    ResultFailures.not_found("CA certificate", "secret default/wirepact-contracts")
"""

from __future__ import annotations

from railway.failure import ErrorCode
from railway.result import Result


class ResultFailures:
    """Factory methods for common failure types."""

    @staticmethod
    def not_found(artifact: str, location: str) -> Result:
        """A required artifact has never been stored."""
        return Result.failure(ErrorCode.NOT_FOUND, f"{artifact} not found in {location}")

    @staticmethod
    def storage_error(message: str, exception: BaseException | None = None) -> Result:
        return Result.failure(ErrorCode.STORAGE_ERROR, message, exception)

    @staticmethod
    def conflict_error(message: str, exception: BaseException | None = None) -> Result:
        """The remote object was modified by another writer."""
        return Result.failure(ErrorCode.CONFLICT_ERROR, message, exception)
