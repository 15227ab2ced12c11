"""Discriminated results returned by every public operation."""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")

NETWORK_ERROR_MESSAGE = "Network error"


class ResultStatus(Enum):
    """Outcome of an operation.

    Attributes:
        OK: The operation succeeded and ``data`` is set.
        FAILED: The backend (or local validation) rejected the operation.
        DEGRADED: The backend could not be reached. Nothing was fabricated
            in its place.
    """

    OK = "ok"
    FAILED = "failed"
    DEGRADED = "degraded"


class ErrorKind(Enum):
    """Which layer an error came from."""

    TRANSPORT = "transport"
    APPLICATION = "application"
    VALIDATION = "validation"


@dataclass
class OperationResult(Generic[T]):
    """Success/failure result of a public operation."""

    status: ResultStatus
    data: T | None = None
    error: str | None = None
    error_kind: ErrorKind | None = None

    @property
    def success(self) -> bool:
        return self.status is ResultStatus.OK

    @property
    def degraded(self) -> bool:
        return self.status is ResultStatus.DEGRADED

    @property
    def retryable(self) -> bool:
        """Transport failures may succeed on a later attempt."""
        return self.error_kind is ErrorKind.TRANSPORT

    @classmethod
    def ok(cls, data: T) -> "OperationResult[T]":
        return cls(status=ResultStatus.OK, data=data)

    @classmethod
    def fail(cls, error: str, kind: ErrorKind = ErrorKind.APPLICATION) -> "OperationResult[T]":
        return cls(status=ResultStatus.FAILED, error=error, error_kind=kind)

    @classmethod
    def invalid(cls, error: str) -> "OperationResult[T]":
        return cls(status=ResultStatus.FAILED, error=error, error_kind=ErrorKind.VALIDATION)

    @classmethod
    def unavailable(cls, error: str = NETWORK_ERROR_MESSAGE) -> "OperationResult[T]":
        return cls(status=ResultStatus.DEGRADED, error=error, error_kind=ErrorKind.TRANSPORT)
