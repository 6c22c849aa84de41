"""
Custom Exceptions for the Cell Records Application

This module defines the exception hierarchy raised by the service layer.
Every exception carries a stable error code, a human-readable message and
a details dictionary so callers can render or log failures uniformly.
"""

from typing import Any, Dict, List, Optional
from enum import Enum


class ErrorCode(str, Enum):
    """Standard error codes for the application"""
    # General errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"

    # Occupancy rules
    CAPACITY_EXCEEDED = "CAPACITY_EXCEEDED"
    INVALID_OPERATION = "INVALID_OPERATION"

    # Storage
    PERSISTENCE_ERROR = "PERSISTENCE_ERROR"

    # Background work
    CANCELLED = "CANCELLED"
    TIMEOUT = "TIMEOUT"


class BaseAppException(Exception):
    """
    Base exception class for all application exceptions.

    Provides consistent error handling across the application with
    structured error information.
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary format"""
        return {
            "error": {
                "message": self.message,
                "code": self.error_code.value,
                "details": self.details,
                "type": self.__class__.__name__
            }
        }

    def __str__(self) -> str:
        return f"{self.error_code.value}: {self.message}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message='{self.message}', error_code='{self.error_code.value}')"


# ========================================
# Input validation
# ========================================

class ValidationError(BaseAppException):
    """Exception raised when input data fails validation"""

    def __init__(
        self,
        message: str = "Validation failed",
        field_errors: Optional[Dict[str, List[str]]] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        merged = dict(details or {})
        if field_errors:
            merged["field_errors"] = field_errors
        super().__init__(message, ErrorCode.VALIDATION_ERROR, merged)
        self.field_errors = field_errors or {}


# ========================================
# Resource Not Found Exceptions
# ========================================

class NotFoundError(BaseAppException):
    """Exception raised when a requested record does not exist"""

    def __init__(
        self,
        resource_type: str = "Resource",
        resource_id: Optional[str] = None,
        message: Optional[str] = None
    ):
        if not message:
            message = f"{resource_type} not found"
            if resource_id:
                message += f" (ID: {resource_id})"

        details = {
            "resource_type": resource_type,
            "resource_id": resource_id
        }
        super().__init__(message, ErrorCode.NOT_FOUND, details)
        self.resource_type = resource_type
        self.resource_id = resource_id


class CellNotFoundError(NotFoundError):
    """Exception raised when a cell number is unknown"""

    def __init__(self, cell_number: str):
        super().__init__("Cell", cell_number, f"Cell {cell_number} not found")
        self.details["cell_number"] = cell_number


class PrisonerNotFoundError(NotFoundError):
    """Exception raised when a prisoner ID is unknown"""

    def __init__(self, prisoner_id: str):
        super().__init__("Prisoner", prisoner_id, f"Prisoner {prisoner_id} not found")


# ========================================
# Occupancy rule violations
# ========================================

class CapacityExceededError(BaseAppException):
    """Exception raised when an admission would overflow a cell"""

    def __init__(
        self,
        cell_number: str,
        capacity: int,
        occupancy: int,
        requested: int,
    ):
        available = capacity - occupancy
        message = (
            f"Cell {cell_number} cannot take {requested} more "
            f"({occupancy}/{capacity} occupied, {available} available)"
        )
        details = {
            "cell_number": cell_number,
            "capacity": capacity,
            "occupancy": occupancy,
            "requested": requested,
            "available": available,
        }
        super().__init__(message, ErrorCode.CAPACITY_EXCEEDED, details)


class InvalidOperationError(BaseAppException):
    """Exception raised when an operation is illegal in the record's current state"""

    def __init__(
        self,
        message: str,
        cell_number: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        merged = dict(details or {})
        if cell_number is not None:
            merged["cell_number"] = cell_number
        super().__init__(message, ErrorCode.INVALID_OPERATION, merged)


# ========================================
# Storage
# ========================================

class PersistenceError(BaseAppException):
    """Exception raised when the underlying store fails; the cause is chained"""

    def __init__(
        self,
        message: str = "Database operation failed",
        original_error: Optional[Exception] = None,
    ):
        details = {}
        if original_error is not None:
            details["error_type"] = type(original_error).__name__
        super().__init__(message, ErrorCode.PERSISTENCE_ERROR, details)
        self.original_error = original_error


__all__ = [
    "ErrorCode",
    "BaseAppException",
    "ValidationError",
    "NotFoundError",
    "CellNotFoundError",
    "PrisonerNotFoundError",
    "CapacityExceededError",
    "InvalidOperationError",
    "PersistenceError",
]
