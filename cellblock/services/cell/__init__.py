"""Cell record management."""

from cellblock.services.cell.cell_service import CellService
from cellblock.services.cell.cell_statistics_service import CellStatisticsService

__all__ = ["CellService", "CellStatisticsService"]
