"""
Failure description — structured error information for the failure track.

An ErrorCode classifies what went wrong; a FailureDescription carries the code
together with a human-readable message, the originating exception (if any)
and the moment the failure was recorded.

The codes mirror the error kinds of a certificate provisioning cycle:
crypto, transport, storage, not-found and optimistic-concurrency conflicts,
plus TECHNICAL_ERROR for exceptions that escape a computation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum, unique
from typing import Optional


@unique
class ErrorCode(Enum):
    """Structured error codes for the failure track."""

    # --- Domain errors ---
    CRYPTO_ERROR = "CRYPTO_ERROR"
    """Key generation, CSR construction, PEM parsing or digest failure."""

    TRANSPORT_ERROR = "TRANSPORT_ERROR"
    """Remote endpoint unreachable or an outbound call failed."""

    STORAGE_ERROR = "STORAGE_ERROR"
    """Opening the storage backend, or persisting or reading an artifact in it, failed."""

    NOT_FOUND = "NOT_FOUND"
    """An artifact required by the operation has never been stored."""

    CONFLICT_ERROR = "CONFLICT_ERROR"
    """The remote object changed between read and write."""

    # --- Infrastructure errors ---
    TECHNICAL_ERROR = "TECHNICAL_ERROR"
    """Unexpected exception escaping a computation."""


@dataclass(frozen=True, slots=True)
class FailureDescription:
    """
    Immutable failure descriptor carrying error code, message, optional exception, and timestamp.

    >>> desc = FailureDescription(ErrorCode.NOT_FOUND, "No CA stored")
    >>> desc.code
    <ErrorCode.NOT_FOUND: 'NOT_FOUND'>
    >>> desc.message
    'No CA stored'
    """

    code: ErrorCode
    message: str
    exception: Optional[BaseException] = field(default=None, repr=False)
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def describe(self) -> str:
        """Message followed by the root exception text, if one was captured."""
        if self.exception is None:
            return self.message
        return f"{self.message}: {self.exception}"
