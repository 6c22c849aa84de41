# --- File: cellblock/schemas/cell/cell_response.py ---
"""
Cell read snapshots and occupancy aggregates.
"""

from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import Field, computed_field

from cellblock.schemas.common.base import BaseResponseSchema
from cellblock.schemas.common.enums import CellStatus, CellType, SecurityLevel

__all__ = [
    "CellRead",
    "OccupancyStatistics",
    "DashboardStatistics",
]


def _percentage(part: int, whole: int) -> float:
    if whole <= 0:
        return 0.0
    return part / whole * 100


class CellRead(BaseResponseSchema):
    """Immutable snapshot of a cell as persisted."""

    cell_number: str
    cell_type: CellType
    capacity: int
    current_occupancy: int
    security_level: SecurityLevel
    status: CellStatus
    created_at: Optional[datetime] = None

    @computed_field  # type: ignore[misc]
    @property
    def available_space(self) -> int:
        return self.capacity - self.current_occupancy

    @computed_field  # type: ignore[misc]
    @property
    def occupancy_rate(self) -> float:
        return _percentage(self.current_occupancy, self.capacity)

    @computed_field  # type: ignore[misc]
    @property
    def has_available_space(self) -> bool:
        return (
            self.available_space > 0
            and self.status != CellStatus.UNDER_MAINTENANCE
        )

    def summary(self) -> str:
        """One-line description used in listings and reports."""
        return (
            f"Cell {self.cell_number}: {self.current_occupancy}/{self.capacity} "
            f"({self.security_level.value}) - {self.status.value}"
        )


class OccupancyStatistics(BaseResponseSchema):
    """Facility-wide capacity and occupancy totals."""

    total_capacity: int = Field(..., ge=0)
    total_occupancy: int = Field(..., ge=0)

    @computed_field  # type: ignore[misc]
    @property
    def available_space(self) -> int:
        return self.total_capacity - self.total_occupancy

    @computed_field  # type: ignore[misc]
    @property
    def utilization_percentage(self) -> float:
        return _percentage(self.total_occupancy, self.total_capacity)

    def as_list(self) -> List[int]:
        """Return `[total_capacity, total_occupancy, available_space]`."""
        return [self.total_capacity, self.total_occupancy, self.available_space]


class DashboardStatistics(BaseResponseSchema):
    """Aggregates shown on the administrator dashboard."""

    total_cells: int
    occupancy: OccupancyStatistics
    status_counts: Dict[CellStatus, int]
    near_capacity: List[str] = Field(
        default_factory=list,
        description="Cell numbers at or above the near-capacity threshold",
    )
    generated_at: datetime
