"""SQLAlchemy repositories. Repositories never commit; the unit of work does."""

from cellblock.repositories.base import BaseRepository
from cellblock.repositories.cell_repository import CellRepository
from cellblock.repositories.prisoner_repository import PrisonerRepository

__all__ = ["BaseRepository", "CellRepository", "PrisonerRepository"]
