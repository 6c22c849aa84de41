# --- File: cellblock/schemas/prisoner/prisoner.py ---
"""
Prisoner placement schemas.

Only the fields needed to keep a prisoner's cell reference consistent with
cell occupancy are modelled here.
"""

from __future__ import annotations

from datetime import date
from typing import Optional

from pydantic import Field

from cellblock.schemas.common.base import BaseCreateSchema, BaseResponseSchema
from cellblock.schemas.common.enums import PrisonerStatus

__all__ = [
    "PrisonerCreate",
    "PrisonerRead",
]


class PrisonerCreate(BaseCreateSchema):
    """Data required to admit a prisoner into a cell."""

    prisoner_id: str = Field(..., min_length=1, max_length=20)
    name: str = Field(..., min_length=1, max_length=100)
    cell_number: str = Field(..., min_length=1, max_length=10)
    crime: Optional[str] = Field(default=None, max_length=200)


class PrisonerRead(BaseResponseSchema):
    """Snapshot of a prisoner's placement."""

    prisoner_id: str
    name: str
    crime: Optional[str] = None
    cell_number: Optional[str] = None
    status: PrisonerStatus
    admission_date: Optional[date] = None
    release_date: Optional[date] = None
