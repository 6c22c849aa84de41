"""
Cell record manager.

Owns the `0 <= occupancy <= capacity` invariant and keeps `status` in step
with occupancy. Every mutation:

- holds the per-cell lock for each cell it touches (sorted order),
- re-reads the rows with SELECT ... FOR UPDATE inside one transaction,
- runs every check before writing anything,
- notifies the dispatcher with `CellChanged` after commit, or with
  `CellOperationFailed` when it is rejected.
"""

from __future__ import annotations

from typing import Any, Callable, List, Optional, Sequence, Tuple, TypeVar

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import IntegrityError

from cellblock.core.exceptions import (
    BaseAppException,
    CellNotFoundError,
    InvalidOperationError,
    ValidationError,
)
from cellblock.core.logging import get_logger
from cellblock.models.cell import Cell
from cellblock.repositories.cell_repository import CellRepository
from cellblock.schemas.cell import (
    CellCreate,
    CellFilter,
    CellRead,
    OccupancyStatistics,
)
from cellblock.schemas.common.enums import CellStatus, SecurityLevel
from cellblock.services.base.event_dispatcher import EventDispatcher
from cellblock.services.base.events import (
    CellChanged,
    CellDeleted,
    CellEvent,
    CellOperationFailed,
)
from cellblock.services.cell import occupancy_rules as rules
from cellblock.services.common.locking import KeyedLock
from cellblock.services.common.unit_of_work import UnitOfWork, UnitOfWorkFactory

T = TypeVar("T")

# A unit of work callback returns its result plus the events to emit on commit.
MutationWork = Callable[[UnitOfWork], Tuple[T, List[CellEvent]]]


def field_errors_from(exc: PydanticValidationError) -> dict:
    errors: dict = {}
    for error in exc.errors():
        name = ".".join(str(part) for part in error["loc"]) or "__root__"
        errors.setdefault(name, []).append(error["msg"])
    return errors


def changed_event(snapshot: CellRead) -> CellChanged:
    return CellChanged(
        cell_number=snapshot.cell_number,
        new_occupancy=snapshot.current_occupancy,
        new_status=snapshot.status,
    )


class CellService:
    """
    Create, mutate and query cells.

    Instances are safe to share between threads; per-cell locks serialize
    writers in-process and row locks serialize them in the database.
    """

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        dispatcher: EventDispatcher,
        *,
        locks: Optional[KeyedLock] = None,
        near_capacity_threshold: float = 90.0,
    ) -> None:
        self._uow_factory = uow_factory
        self._dispatcher = dispatcher
        self._locks = locks or KeyedLock()
        self.near_capacity_threshold = near_capacity_threshold
        self._logger = get_logger(self.__class__.__name__)

    # ------------------------------------------------------------------ #
    # Mutation plumbing
    # ------------------------------------------------------------------ #

    def execute(
        self,
        operation: str,
        cell_numbers: Sequence[str],
        work: MutationWork[T],
    ) -> T:
        """
        Run `work` under the locks of `cell_numbers` in one transaction.

        Failures are reported to the dispatcher against the first cell and
        re-raised unchanged.
        """
        primary = cell_numbers[0] if cell_numbers else None
        try:
            with self._locks.hold(*cell_numbers):
                with self._uow_factory() as uow:
                    result, events = work(uow)
        except BaseAppException as exc:
            self.report_failure(operation, primary, exc)
            raise

        self._logger.info(
            f"Cell operation committed: {operation}",
            operation=operation,
            cells=list(cell_numbers),
        )
        self._dispatcher.dispatch_many(events)
        return result

    def report_failure(
        self,
        operation: str,
        cell_number: Optional[str],
        exc: BaseAppException,
    ) -> None:
        self._logger.warning(
            f"Cell operation rejected: {operation}",
            operation=operation,
            cell_number=cell_number,
            error_code=exc.error_code.value,
            error=exc.message,
        )
        self._dispatcher.dispatch(
            CellOperationFailed(
                cell_number=cell_number,
                operation=operation,
                error_kind=exc.error_code,
                message=exc.message,
            )
        )

    @staticmethod
    def load_for_update(uow: UnitOfWork, cell_number: str) -> Cell:
        cell = uow.get_repo(CellRepository).find_by_number(cell_number, for_update=True)
        if cell is None:
            raise CellNotFoundError(cell_number)
        return cell

    @staticmethod
    def _snapshot(uow: UnitOfWork, cell: Cell) -> CellRead:
        uow.get_repo(CellRepository).save(cell)
        return CellRead.model_validate(cell)

    # Building blocks shared with the placement service. Each one locks
    # nothing itself; callers go through `execute`.

    def admit_in(self, uow: UnitOfWork, cell_number: str, count: int = 1) -> CellRead:
        rules.validate_count(count)
        cell = self.load_for_update(uow, cell_number)
        new_occupancy = rules.check_admit(
            cell.cell_number, cell.capacity, cell.current_occupancy, count
        )
        cell.status = rules.status_after_admit(cell.status, new_occupancy, cell.capacity)
        cell.current_occupancy = new_occupancy
        return self._snapshot(uow, cell)

    def release_in(self, uow: UnitOfWork, cell_number: str, count: int = 1) -> CellRead:
        rules.validate_count(count)
        cell = self.load_for_update(uow, cell_number)
        new_occupancy = rules.check_release(cell.cell_number, cell.current_occupancy, count)
        cell.status = rules.status_after_release(cell.status, new_occupancy)
        cell.current_occupancy = new_occupancy
        return self._snapshot(uow, cell)

    def transfer_in(
        self,
        uow: UnitOfWork,
        from_cell: str,
        to_cell: str,
        count: int = 1,
    ) -> Tuple[CellRead, CellRead]:
        """Validate both cells, then write both; nothing is written if either check fails."""
        rules.validate_count(count)
        if from_cell == to_cell:
            raise InvalidOperationError(
                f"Cannot transfer from cell {from_cell} to itself",
                cell_number=from_cell,
            )

        # Row locks are taken in the same order as the in-process locks.
        loaded = {number: self.load_for_update(uow, number) for number in sorted((from_cell, to_cell))}
        source, target = loaded[from_cell], loaded[to_cell]
        source_occupancy = rules.check_release(source.cell_number, source.current_occupancy, count)
        target_occupancy = rules.check_admit(
            target.cell_number, target.capacity, target.current_occupancy, count
        )

        source.status = rules.status_after_release(source.status, source_occupancy)
        source.current_occupancy = source_occupancy
        target.status = rules.status_after_admit(target.status, target_occupancy, target.capacity)
        target.current_occupancy = target_occupancy
        return self._snapshot(uow, source), self._snapshot(uow, target)

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    def create(
        self,
        cell_number: Any,
        cell_type: Any,
        capacity: Any,
        security_level: Any,
    ) -> CellRead:
        """Register a new, empty cell. Raises `ValidationError` for bad input or a duplicate number."""
        raw_number = cell_number if isinstance(cell_number, str) else None
        try:
            data = CellCreate.model_validate(
                {
                    "cell_number": cell_number,
                    "cell_type": cell_type,
                    "capacity": capacity,
                    "security_level": security_level,
                }
            )
        except PydanticValidationError as exc:
            error = ValidationError("Invalid cell data", field_errors=field_errors_from(exc))
            self.report_failure("create", raw_number, error)
            raise error from exc

        return self.create_from(data)

    def create_from(self, data: CellCreate) -> CellRead:
        def work(uow: UnitOfWork):
            repo = uow.get_repo(CellRepository)
            if repo.exists(data.cell_number):
                raise ValidationError(
                    f"Cell {data.cell_number} already exists",
                    field_errors={"cell_number": ["already in use"]},
                    details={"cell_number": data.cell_number},
                )
            cell = Cell(
                cell_number=data.cell_number,
                cell_type=data.cell_type,
                capacity=data.capacity,
                security_level=data.security_level,
                current_occupancy=0,
                status=CellStatus.VACANT,
            )
            try:
                repo.create(cell)
            except IntegrityError as exc:
                raise ValidationError(
                    f"Cell {data.cell_number} violates a storage constraint",
                    details={"cell_number": data.cell_number},
                ) from exc
            snapshot = CellRead.model_validate(cell)
            return snapshot, [changed_event(snapshot)]

        return self.execute("create", [data.cell_number], work)

    def delete(self, cell_number: str) -> None:
        """Remove an empty cell."""

        def work(uow: UnitOfWork):
            cell = self.load_for_update(uow, cell_number)
            rules.check_empty(cell.cell_number, cell.current_occupancy, "delete")
            uow.get_repo(CellRepository).delete(cell)
            return None, [CellDeleted(cell_number=cell_number)]

        self.execute("delete", [cell_number], work)

    # ------------------------------------------------------------------ #
    # Occupancy
    # ------------------------------------------------------------------ #

    def admit(self, cell_number: str, count: int = 1) -> CellRead:
        def work(uow: UnitOfWork):
            snapshot = self.admit_in(uow, cell_number, count)
            return snapshot, [changed_event(snapshot)]

        return self.execute("admit", [cell_number], work)

    def release(self, cell_number: str, count: int = 1) -> CellRead:
        def work(uow: UnitOfWork):
            snapshot = self.release_in(uow, cell_number, count)
            return snapshot, [changed_event(snapshot)]

        return self.execute("release", [cell_number], work)

    def set_occupancy(self, cell_number: str, new_value: int) -> CellRead:
        """Direct edit of occupancy; status follows the admit/release rule."""

        def work(uow: UnitOfWork):
            cell = self.load_for_update(uow, cell_number)
            value = rules.check_set_occupancy(cell.cell_number, cell.capacity, new_value)
            cell.status = rules.status_after_set(
                cell.status, cell.current_occupancy, value, cell.capacity
            )
            cell.current_occupancy = value
            snapshot = self._snapshot(uow, cell)
            return snapshot, [changed_event(snapshot)]

        return self.execute("set_occupancy", [cell_number], work)

    def transfer(self, from_cell: str, to_cell: str, count: int = 1) -> Tuple[CellRead, CellRead]:
        """Move `count` occupants atomically; returns `(source, target)` snapshots."""

        def work(uow: UnitOfWork):
            source, target = self.transfer_in(uow, from_cell, to_cell, count)
            return (source, target), [changed_event(source), changed_event(target)]

        return self.execute("transfer", [from_cell, to_cell], work)

    # ------------------------------------------------------------------ #
    # Status
    # ------------------------------------------------------------------ #

    def set_under_maintenance(self, cell_number: str) -> CellRead:
        def work(uow: UnitOfWork):
            cell = self.load_for_update(uow, cell_number)
            rules.check_empty(cell.cell_number, cell.current_occupancy, "put under maintenance")
            cell.status = CellStatus.UNDER_MAINTENANCE
            snapshot = self._snapshot(uow, cell)
            return snapshot, [changed_event(snapshot)]

        return self.execute("set_under_maintenance", [cell_number], work)

    def clear_maintenance(self, cell_number: str) -> CellRead:
        """Return the cell to the status its occupancy implies."""

        def work(uow: UnitOfWork):
            cell = self.load_for_update(uow, cell_number)
            cell.status = rules.derive_status(cell.current_occupancy, cell.capacity)
            snapshot = self._snapshot(uow, cell)
            return snapshot, [changed_event(snapshot)]

        return self.execute("clear_maintenance", [cell_number], work)

    def update_status(self, cell_number: str, status: Any) -> CellRead:
        """Manual status edit, rejected when it would contradict occupancy."""

        def work(uow: UnitOfWork):
            requested = rules.coerce_status(status)
            cell = self.load_for_update(uow, cell_number)
            cell.status = rules.check_status_update(
                cell.cell_number, cell.current_occupancy, cell.capacity, requested
            )
            snapshot = self._snapshot(uow, cell)
            return snapshot, [changed_event(snapshot)]

        return self.execute("update_status", [cell_number], work)

    # ------------------------------------------------------------------ #
    # Queries
    # ------------------------------------------------------------------ #

    def _read(self, query: Callable[[CellRepository], T]) -> T:
        with self._uow_factory(auto_commit=False) as uow:
            return query(uow.get_repo(CellRepository))

    @staticmethod
    def _snapshots(cells: Sequence[Cell]) -> List[CellRead]:
        return [CellRead.model_validate(cell) for cell in cells]

    def get(self, cell_number: str) -> CellRead:
        def query(repo: CellRepository) -> CellRead:
            cell = repo.find_by_number(cell_number)
            if cell is None:
                raise CellNotFoundError(cell_number)
            return CellRead.model_validate(cell)

        return self._read(query)

    def list_all(self) -> List[CellRead]:
        return self._read(lambda repo: self._snapshots(repo.list_all()))

    def list_by_security_level(self, security_level: SecurityLevel) -> List[CellRead]:
        return self._read(
            lambda repo: self._snapshots(repo.list_by_predicate(security_level=security_level))
        )

    def list_by_status(self, status: CellStatus) -> List[CellRead]:
        return self._read(lambda repo: self._snapshots(repo.list_by_predicate(status=status)))

    def list_available(self) -> List[CellRead]:
        """Cells with free space that are not under maintenance."""
        return self._read(lambda repo: self._snapshots(repo.list_by_predicate(available=True)))

    def search(self, term: str) -> List[CellRead]:
        return self._read(lambda repo: self._snapshots(repo.search(term)))

    def filter_cells(self, criteria: Optional[CellFilter] = None, **kwargs: Any) -> List[CellRead]:
        """Combined search term, security level, status and availability filter."""
        if criteria is None:
            try:
                criteria = CellFilter.model_validate(kwargs)
            except PydanticValidationError as exc:
                raise ValidationError(
                    "Invalid cell filter", field_errors=field_errors_from(exc)
                ) from exc

        return self._read(
            lambda repo: self._snapshots(
                repo.filter_cells(
                    search_term=criteria.search_term,
                    security_level=criteria.security_level,
                    status=criteria.status,
                    availability=criteria.availability,
                )
            )
        )

    def near_capacity(self, threshold: Optional[float] = None) -> List[CellRead]:
        """Cells at or above `threshold` percent occupancy."""
        if threshold is None:
            threshold = self.near_capacity_threshold
        return self._read(lambda repo: self._snapshots(repo.list_near_capacity(threshold)))

    def with_available_space(self, required_space: int = 1) -> List[CellRead]:
        rules.validate_count(required_space)
        return self._read(
            lambda repo: self._snapshots(repo.list_with_available_space(required_space))
        )

    def count(self) -> int:
        return self._read(lambda repo: repo.count())

    def occupancy_totals(self) -> List[int]:
        """`[total_capacity, total_occupancy]`, read in one SELECT."""
        return list(self._read(lambda repo: repo.occupancy_totals()))

    def occupancy_statistics(self) -> OccupancyStatistics:
        total_capacity, total_occupancy = self._read(lambda repo: repo.occupancy_totals())
        return OccupancyStatistics(
            total_capacity=total_capacity,
            total_occupancy=total_occupancy,
        )

    def statistics(self) -> List[int]:
        """`[total_capacity, total_occupancy, available_space]`."""
        return self.occupancy_statistics().as_list()

    def utilization_percentage(self) -> float:
        """Facility utilisation; 0 when there are no cells."""
        return self.occupancy_statistics().utilization_percentage
