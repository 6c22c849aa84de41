# cellblock/repositories/cell_repository.py
from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Tuple

from sqlalchemy import String, and_, cast, func, or_, select
from sqlalchemy.orm import Session

from cellblock.models.cell import Cell
from cellblock.repositories.base import BaseRepository
from cellblock.schemas.common.enums import (
    AvailabilityFilter,
    CellStatus,
    CellType,
    SecurityLevel,
)


class CellRepository(BaseRepository[Cell]):
    """
    Persistence and queries for cells.

    Every list is ordered by cell number so callers get a stable listing.
    """

    key_attr = "cell_number"

    def __init__(self, session: Session):
        super().__init__(session, Cell)

    # ------------------------------------------------------------------ #
    # Persistence interface
    # ------------------------------------------------------------------ #
    def find_by_number(self, cell_number: str, *, for_update: bool = False) -> Optional[Cell]:
        """Return the cell or None; `for_update` locks the row where supported."""
        return self.get(cell_number, for_update=for_update)

    def save(self, cell: Cell) -> Cell:
        """Insert or update `cell` within the current transaction."""
        self.session.add(cell)
        self.session.flush()
        return cell

    def list_all(self) -> Sequence[Cell]:
        return self.get_multi()

    def list_by_predicate(
        self,
        *,
        security_level: Optional[SecurityLevel] = None,
        status: Optional[CellStatus] = None,
        available: Optional[bool] = None,
        cell_type: Optional[CellType] = None,
    ) -> Sequence[Cell]:
        """
        List cells matching every given criterion.

        `available=True` keeps cells with free space that are not under
        maintenance; `available=False` keeps the complement.
        """
        stmt = self._apply_filters(
            self._base_select(),
            {
                "security_level": security_level,
                "status": status,
                "cell_type": cell_type,
            },
        )
        if available is not None:
            condition = self._has_available_space()
            stmt = stmt.where(condition if available else ~condition)
        return self.session.execute(stmt.order_by(Cell.cell_number)).scalars().all()

    # ------------------------------------------------------------------ #
    # Search & filtering
    # ------------------------------------------------------------------ #
    def search(self, term: str) -> Sequence[Cell]:
        """Case-insensitive match on cell number, type or security level."""
        term = (term or "").strip()
        if not term:
            return self.list_all()

        # Literal substring match: LIKE wildcards in the term are escaped.
        needle = term.lower()
        stmt = self._base_select().where(
            or_(
                func.lower(Cell.cell_number).contains(needle, autoescape=True),
                func.lower(cast(Cell.cell_type, String)).contains(needle, autoescape=True),
                func.lower(cast(Cell.security_level, String)).contains(needle, autoescape=True),
            )
        )
        return self.session.execute(stmt.order_by(Cell.cell_number)).scalars().all()

    def filter_cells(
        self,
        *,
        search_term: str = "",
        security_level: Optional[SecurityLevel] = None,
        status: Optional[CellStatus] = None,
        availability: AvailabilityFilter = AvailabilityFilter.ALL,
    ) -> List[Cell]:
        """Combined search used by the cell management screen."""
        cells = self.search(search_term)
        return [
            cell
            for cell in cells
            if (security_level is None or cell.security_level == security_level)
            and (status is None or cell.status == status)
            and self._matches_availability(cell, availability)
        ]

    def list_near_capacity(self, threshold: float) -> Sequence[Cell]:
        """Cells whose occupancy rate is at or above `threshold` percent."""
        stmt = self._base_select().where(
            Cell.current_occupancy * 100.0 >= Cell.capacity * threshold
        )
        return self.session.execute(stmt.order_by(Cell.cell_number)).scalars().all()

    def list_with_available_space(self, required_space: int = 1) -> Sequence[Cell]:
        """Cells not under maintenance with at least `required_space` free places."""
        stmt = self._base_select().where(
            and_(
                Cell.capacity - Cell.current_occupancy >= required_space,
                Cell.status != CellStatus.UNDER_MAINTENANCE,
            )
        )
        return self.session.execute(stmt.order_by(Cell.cell_number)).scalars().all()

    # ------------------------------------------------------------------ #
    # Aggregates
    # ------------------------------------------------------------------ #
    def occupancy_totals(self) -> Tuple[int, int]:
        """Return `(total_capacity, total_occupancy)` read in one SELECT."""
        stmt = select(
            func.coalesce(func.sum(Cell.capacity), 0),
            func.coalesce(func.sum(Cell.current_occupancy), 0),
        )
        total_capacity, total_occupancy = self.session.execute(stmt).one()
        return int(total_capacity), int(total_occupancy)

    def count_by_status(self) -> Dict[CellStatus, int]:
        stmt = select(Cell.status, func.count(Cell.cell_number)).group_by(Cell.status)
        counts = {status: 0 for status in CellStatus}
        for status, count in self.session.execute(stmt).all():
            counts[CellStatus(status)] = count
        return counts

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #
    @staticmethod
    def _has_available_space():
        return and_(
            Cell.current_occupancy < Cell.capacity,
            Cell.status != CellStatus.UNDER_MAINTENANCE,
        )

    @staticmethod
    def _matches_availability(cell: Cell, availability: AvailabilityFilter) -> bool:
        if availability == AvailabilityFilter.AVAILABLE:
            return cell.available_space > 0 and cell.status != CellStatus.UNDER_MAINTENANCE
        if availability == AvailabilityFilter.FULL:
            return cell.available_space == 0
        if availability == AvailabilityFilter.UNDER_MAINTENANCE:
            return cell.status == CellStatus.UNDER_MAINTENANCE
        return True
