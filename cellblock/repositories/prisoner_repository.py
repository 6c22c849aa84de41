# cellblock/repositories/prisoner_repository.py
from __future__ import annotations

from typing import Optional, Sequence

from sqlalchemy.orm import Session

from cellblock.models.prisoner import Prisoner
from cellblock.repositories.base import BaseRepository
from cellblock.schemas.common.enums import PrisonerStatus


class PrisonerRepository(BaseRepository[Prisoner]):
    key_attr = "prisoner_id"

    def __init__(self, session: Session):
        super().__init__(session, Prisoner)

    def find_by_id(self, prisoner_id: str, *, for_update: bool = False) -> Optional[Prisoner]:
        return self.get(prisoner_id, for_update=for_update)

    def list_by_cell(self, cell_number: str) -> Sequence[Prisoner]:
        """Prisoners currently in custody in `cell_number`."""
        return self.get_multi(
            filters={
                "cell_number": cell_number,
                "status": PrisonerStatus.IN_CUSTODY,
            }
        )

    def count_in_cell(self, cell_number: str) -> int:
        return self.count(
            filters={
                "cell_number": cell_number,
                "status": PrisonerStatus.IN_CUSTODY,
            }
        )
