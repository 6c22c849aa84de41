# --- File: cellblock/schemas/cell/cell_base.py ---
"""
Cell input schemas.

Validation here is the first gate for every create/filter request; the
service layer converts pydantic failures into the application's own
`ValidationError` so callers only handle one exception family.
"""

from __future__ import annotations

from typing import Optional

from pydantic import Field, field_validator

from cellblock.schemas.common.base import BaseCreateSchema, BaseSchema
from cellblock.schemas.common.enums import (
    AvailabilityFilter,
    CellStatus,
    CellType,
    SecurityLevel,
)

__all__ = [
    "MIN_CAPACITY",
    "MAX_CAPACITY",
    "CellCreate",
    "CellFilter",
]

MIN_CAPACITY = 1
MAX_CAPACITY = 50


class CellCreate(BaseCreateSchema):
    """
    Data required to register a new cell.

    Capacity and security level are fixed once the cell exists.
    """

    cell_number: str = Field(
        ...,
        min_length=1,
        max_length=10,
        description="Unique cell identifier (e.g. 'C-101')",
        examples=["C-101", "B-12"],
    )
    cell_type: CellType = Field(..., description="Cell type")
    capacity: int = Field(
        ...,
        ge=MIN_CAPACITY,
        le=MAX_CAPACITY,
        description="Maximum number of occupants",
    )
    security_level: SecurityLevel = Field(..., description="Security classification")

    @field_validator("capacity", mode="before")
    @classmethod
    def reject_bool_capacity(cls, value):
        if isinstance(value, bool):
            raise ValueError("capacity must be an integer")
        return value


class CellFilter(BaseSchema):
    """
    Criteria for the cell management search.

    All criteria are combined with AND; an empty search term and the
    default availability match everything.
    """

    search_term: str = Field(
        default="",
        max_length=50,
        description="Case-insensitive match on cell number, type or security level",
    )
    security_level: Optional[SecurityLevel] = None
    status: Optional[CellStatus] = None
    availability: AvailabilityFilter = AvailabilityFilter.ALL
