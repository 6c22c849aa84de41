"""
Service result patterns for work whose outcome is delivered later.

Synchronous operations raise `BaseAppException` subclasses; background
tasks hand the same information to their callback as a `ServiceResult`.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Generic, Optional, TypeVar

from cellblock.core.exceptions import BaseAppException, ErrorCode


class ErrorSeverity(str, Enum):
    """Error severity levels."""

    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


@dataclass
class ServiceError:
    """Represents a service operation error with context."""

    code: ErrorCode
    message: str
    severity: ErrorSeverity = ErrorSeverity.ERROR
    details: Dict[str, Any] = field(default_factory=dict)
    exception: Optional[BaseException] = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def from_exception(cls, exc: BaseException) -> "ServiceError":
        """Build an error from an exception, keeping the original for inspection."""
        if isinstance(exc, BaseAppException):
            return cls(
                code=exc.error_code,
                message=exc.message,
                details=dict(exc.details),
                exception=exc,
            )
        return cls(
            code=ErrorCode.INTERNAL_ERROR,
            message=str(exc) or type(exc).__name__,
            details={"exception_type": type(exc).__name__},
            exception=exc,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code.value,
            "message": self.message,
            "severity": self.severity.value,
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
        }


TData = TypeVar("TData")


@dataclass
class ServiceResult(Generic[TData]):
    """
    Standardized operation result with success/failure pattern.

    Attributes:
        is_success: Operation success indicator
        data: Result data (if successful)
        error: Error information (if failed)
        message: Human-readable status message
        metadata: Additional context information
    """

    is_success: bool
    data: Optional[TData] = None
    error: Optional[ServiceError] = None
    message: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def success(
        cls,
        data: Optional[TData] = None,
        message: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> "ServiceResult[TData]":
        """Create a successful result."""
        return cls(
            is_success=True,
            data=data,
            message=message,
            metadata=metadata or {},
        )

    @classmethod
    def failure(
        cls,
        error: ServiceError,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> "ServiceResult[TData]":
        """Create a failed result."""
        return cls(
            is_success=False,
            error=error,
            message=error.message,
            metadata=metadata or {},
        )

    @classmethod
    def from_exception(cls, exc: BaseException) -> "ServiceResult[TData]":
        return cls.failure(ServiceError.from_exception(exc))

    @classmethod
    def cancelled(cls, message: str = "Task was cancelled") -> "ServiceResult[TData]":
        return cls.failure(
            ServiceError(
                code=ErrorCode.CANCELLED,
                message=message,
                severity=ErrorSeverity.INFO,
            )
        )

    @classmethod
    def timed_out(cls, timeout: float) -> "ServiceResult[TData]":
        return cls.failure(
            ServiceError(
                code=ErrorCode.TIMEOUT,
                message=f"Task did not complete within {timeout:g}s",
                severity=ErrorSeverity.WARNING,
                details={"timeout_seconds": timeout},
            )
        )

    @property
    def is_failure(self) -> bool:
        return not self.is_success

    def unwrap(self) -> TData:
        """
        Return the data or re-raise the failure.

        The original exception is re-raised when one was captured; otherwise
        a `BaseAppException` is built from the error.
        """
        if self.is_success:
            return self.data  # type: ignore[return-value]
        assert self.error is not None
        if self.error.exception is not None:
            raise self.error.exception
        raise BaseAppException(self.error.message, self.error.code, self.error.details)
