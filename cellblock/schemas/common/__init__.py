"""Common schema building blocks."""

from cellblock.schemas.common.base import (
    BaseCreateSchema,
    BaseResponseSchema,
    BaseSchema,
)
from cellblock.schemas.common.enums import (
    AvailabilityFilter,
    CellStatus,
    CellType,
    PrisonerStatus,
    SecurityLevel,
)

__all__ = [
    "BaseSchema",
    "BaseCreateSchema",
    "BaseResponseSchema",
    "AvailabilityFilter",
    "CellStatus",
    "CellType",
    "PrisonerStatus",
    "SecurityLevel",
]
