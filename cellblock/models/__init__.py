"""ORM models."""

from cellblock.models.cell import Cell
from cellblock.models.prisoner import Prisoner

__all__ = ["Cell", "Prisoner"]
