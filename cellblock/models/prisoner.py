# --- File: cellblock/models/prisoner.py ---
"""
Prisoner placement model.

`cell_number` is a plain reference rather than a foreign key: cells may be
deleted while historical prisoner rows still name them.
"""

from datetime import date
from typing import Optional

from sqlalchemy import Date, Enum as SAEnum, String
from sqlalchemy.orm import Mapped, mapped_column

from cellblock.db.base import Base
from cellblock.models.mixins import TimestampMixin
from cellblock.schemas.common.enums import PrisonerStatus

__all__ = ["Prisoner"]


class Prisoner(TimestampMixin, Base):
    """A prisoner and the cell they currently occupy."""

    __tablename__ = "prisoners"

    prisoner_id: Mapped[str] = mapped_column(String(20), primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    crime: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    cell_number: Mapped[Optional[str]] = mapped_column(
        String(10),
        nullable=True,
        index=True,
    )
    status: Mapped[PrisonerStatus] = mapped_column(
        SAEnum(
            PrisonerStatus,
            name="prisoner_status",
            native_enum=False,
            length=20,
            values_callable=lambda members: [m.value for m in members],
        ),
        nullable=False,
        default=PrisonerStatus.IN_CUSTODY,
        index=True,
    )
    admission_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    release_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    def __repr__(self) -> str:
        return (
            f"<Prisoner(prisoner_id={self.prisoner_id}, cell={self.cell_number}, "
            f"status={self.status})>"
        )

    @property
    def is_in_custody(self) -> bool:
        return self.status == PrisonerStatus.IN_CUSTODY
