"""
Prisoner placement.

Keeps each prisoner's `cell_number` consistent with cell occupancy by
changing both in the same transaction, under the cell service's locks.
"""

from datetime import date
from typing import List, Optional

from pydantic import ValidationError as PydanticValidationError

from cellblock.core.exceptions import (
    BaseAppException,
    InvalidOperationError,
    PrisonerNotFoundError,
    ValidationError,
)
from cellblock.core.logging import get_logger
from cellblock.models.prisoner import Prisoner
from cellblock.repositories.prisoner_repository import PrisonerRepository
from cellblock.schemas.common.enums import PrisonerStatus
from cellblock.schemas.prisoner import PrisonerCreate, PrisonerRead
from cellblock.services.cell.cell_service import CellService, changed_event, field_errors_from
from cellblock.services.common.unit_of_work import UnitOfWork, UnitOfWorkFactory


class PlacementService:
    """Admit, move and release prisoners."""

    def __init__(self, cells: CellService, uow_factory: UnitOfWorkFactory):
        self._cells = cells
        self._uow_factory = uow_factory
        self._logger = get_logger(self.__class__.__name__)

    @staticmethod
    def _load_in_custody(uow: UnitOfWork, prisoner_id: str) -> Prisoner:
        prisoner = uow.get_repo(PrisonerRepository).find_by_id(prisoner_id, for_update=True)
        if prisoner is None:
            raise PrisonerNotFoundError(prisoner_id)
        if not prisoner.is_in_custody or prisoner.cell_number is None:
            raise InvalidOperationError(
                f"Prisoner {prisoner_id} is not in custody",
                details={"prisoner_id": prisoner_id, "status": prisoner.status.value},
            )
        return prisoner

    def _current_cell(self, operation: str, prisoner_id: str) -> str:
        """Cell the prisoner occupies; lookup failures are reported like any rejected mutation."""
        try:
            with self._uow_factory(auto_commit=False) as uow:
                prisoner = uow.get_repo(PrisonerRepository).find_by_id(prisoner_id)
                if prisoner is None:
                    raise PrisonerNotFoundError(prisoner_id)
                cell_number = prisoner.cell_number
            if cell_number is None:
                raise InvalidOperationError(
                    f"Prisoner {prisoner_id} is not in custody",
                    details={"prisoner_id": prisoner_id},
                )
        except BaseAppException as exc:
            self._cells.report_failure(operation, None, exc)
            raise
        return cell_number

    def admit_prisoner(
        self,
        prisoner_id: str,
        name: str,
        cell_number: str,
        crime: Optional[str] = None,
        admission_date: Optional[date] = None,
    ) -> PrisonerRead:
        """Create the prisoner record and take one place in `cell_number`."""
        try:
            data = PrisonerCreate(
                prisoner_id=prisoner_id,
                name=name,
                cell_number=cell_number,
                crime=crime,
            )
        except PydanticValidationError as exc:
            error = ValidationError("Invalid prisoner data", field_errors=field_errors_from(exc))
            self._cells.report_failure(
                "admit_prisoner", cell_number if isinstance(cell_number, str) else None, error
            )
            raise error from exc

        def work(uow: UnitOfWork):
            repo = uow.get_repo(PrisonerRepository)
            if repo.exists(data.prisoner_id):
                raise ValidationError(
                    f"Prisoner {data.prisoner_id} already exists",
                    field_errors={"prisoner_id": ["already in use"]},
                )
            snapshot = self._cells.admit_in(uow, data.cell_number, 1)
            prisoner = repo.create(
                Prisoner(
                    prisoner_id=data.prisoner_id,
                    name=data.name,
                    crime=data.crime,
                    cell_number=data.cell_number,
                    status=PrisonerStatus.IN_CUSTODY,
                    admission_date=admission_date or date.today(),
                )
            )
            return PrisonerRead.model_validate(prisoner), [changed_event(snapshot)]

        result = self._cells.execute("admit_prisoner", [data.cell_number], work)
        self._logger.info(
            "Prisoner admitted",
            prisoner_id=data.prisoner_id,
            cell_number=data.cell_number,
        )
        return result

    def move_prisoner(self, prisoner_id: str, to_cell: str) -> PrisonerRead:
        """Transfer the prisoner's place to `to_cell`."""
        from_cell = self._current_cell("move_prisoner", prisoner_id)

        def work(uow: UnitOfWork):
            prisoner = self._load_in_custody(uow, prisoner_id)
            if prisoner.cell_number != from_cell:
                # Moved by someone else between the lookup and the lock.
                raise InvalidOperationError(
                    f"Prisoner {prisoner_id} changed cell during the move",
                    cell_number=from_cell,
                    details={"prisoner_id": prisoner_id},
                )
            source, target = self._cells.transfer_in(uow, from_cell, to_cell, 1)
            uow.get_repo(PrisonerRepository).update(prisoner, {"cell_number": to_cell})
            return PrisonerRead.model_validate(prisoner), [changed_event(source), changed_event(target)]

        result = self._cells.execute("move_prisoner", [from_cell, to_cell], work)
        self._logger.info(
            "Prisoner moved",
            prisoner_id=prisoner_id,
            from_cell=from_cell,
            to_cell=to_cell,
        )
        return result

    def release_prisoner(self, prisoner_id: str, release_date: Optional[date] = None) -> PrisonerRead:
        """Free the prisoner's place and mark the record released."""
        cell_number = self._current_cell("release_prisoner", prisoner_id)

        def work(uow: UnitOfWork):
            prisoner = self._load_in_custody(uow, prisoner_id)
            if prisoner.cell_number != cell_number:
                raise InvalidOperationError(
                    f"Prisoner {prisoner_id} changed cell during the release",
                    cell_number=cell_number,
                    details={"prisoner_id": prisoner_id},
                )
            snapshot = self._cells.release_in(uow, cell_number, 1)
            uow.get_repo(PrisonerRepository).update(
                prisoner,
                {
                    "cell_number": None,
                    "status": PrisonerStatus.RELEASED,
                    "release_date": release_date or date.today(),
                },
            )
            return PrisonerRead.model_validate(prisoner), [changed_event(snapshot)]

        result = self._cells.execute("release_prisoner", [cell_number], work)
        self._logger.info("Prisoner released", prisoner_id=prisoner_id, cell_number=cell_number)
        return result

    def get_prisoner(self, prisoner_id: str) -> PrisonerRead:
        with self._uow_factory(auto_commit=False) as uow:
            prisoner = uow.get_repo(PrisonerRepository).find_by_id(prisoner_id)
            if prisoner is None:
                raise PrisonerNotFoundError(prisoner_id)
            return PrisonerRead.model_validate(prisoner)

    def prisoners_in_cell(self, cell_number: str) -> List[PrisonerRead]:
        with self._uow_factory(auto_commit=False) as uow:
            prisoners = uow.get_repo(PrisonerRepository).list_by_cell(cell_number)
            return [PrisonerRead.model_validate(p) for p in prisoners]
