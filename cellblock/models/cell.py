# --- File: cellblock/models/cell.py ---
"""
Cell model.

A cell's capacity and security level are fixed at creation; occupancy and
status move together through the service layer.
"""

from sqlalchemy import CheckConstraint, Enum as SAEnum, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from cellblock.db.base import Base
from cellblock.models.mixins import TimestampMixin
from cellblock.schemas.common.enums import CellStatus, CellType, SecurityLevel

__all__ = ["Cell"]


def _enum_column(enum_cls, name: str) -> SAEnum:
    # Persist the display value ("Maximum Security"), not the member name.
    return SAEnum(
        enum_cls,
        name=name,
        native_enum=False,
        length=30,
        validate_strings=True,
        values_callable=lambda members: [m.value for m in members],
    )


class Cell(TimestampMixin, Base):
    """
    A physical cell with a fixed capacity.

    The table-level checks mirror the occupancy invariants so that a bug in
    the service layer cannot persist an impossible row.
    """

    __tablename__ = "cells"

    cell_number: Mapped[str] = mapped_column(String(10), primary_key=True)
    cell_type: Mapped[CellType] = mapped_column(
        _enum_column(CellType, "cell_type"),
        nullable=False,
    )
    capacity: Mapped[int] = mapped_column(Integer, nullable=False)
    current_occupancy: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
    )
    security_level: Mapped[SecurityLevel] = mapped_column(
        _enum_column(SecurityLevel, "security_level"),
        nullable=False,
        index=True,
    )
    status: Mapped[CellStatus] = mapped_column(
        _enum_column(CellStatus, "cell_status"),
        nullable=False,
        default=CellStatus.VACANT,
        index=True,
    )

    __table_args__ = (
        CheckConstraint("capacity >= 1 AND capacity <= 50", name="ck_cell_capacity_range"),
        CheckConstraint("current_occupancy >= 0", name="ck_cell_occupancy_non_negative"),
        CheckConstraint("current_occupancy <= capacity", name="ck_cell_occupancy_within_capacity"),
        Index("ix_cell_occupancy", "current_occupancy", "capacity"),
    )

    def __repr__(self) -> str:
        return (
            f"<Cell(cell_number={self.cell_number}, type={self.cell_type}, "
            f"occupancy={self.current_occupancy}/{self.capacity}, status={self.status})>"
        )

    @property
    def available_space(self) -> int:
        return self.capacity - self.current_occupancy

    @property
    def occupancy_rate(self) -> float:
        """Current occupancy as a percentage of capacity."""
        if not self.capacity:
            return 0.0
        return self.current_occupancy / self.capacity * 100
