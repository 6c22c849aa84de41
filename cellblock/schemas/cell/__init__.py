"""Cell schemas."""

from cellblock.schemas.cell.cell_base import (
    MAX_CAPACITY,
    MIN_CAPACITY,
    CellCreate,
    CellFilter,
)
from cellblock.schemas.cell.cell_response import (
    CellRead,
    DashboardStatistics,
    OccupancyStatistics,
)

__all__ = [
    "MAX_CAPACITY",
    "MIN_CAPACITY",
    "CellCreate",
    "CellFilter",
    "CellRead",
    "DashboardStatistics",
    "OccupancyStatistics",
]
