"""
Occupancy and status rules for cells.

Pure functions over plain values. Every mutation path in the service layer
goes through these so admit, release, direct edits, transfers and manual
status changes all agree on the resulting status.
"""

from typing import Any

from cellblock.core.exceptions import (
    CapacityExceededError,
    InvalidOperationError,
    ValidationError,
)
from cellblock.schemas.common.enums import CellStatus

# Statuses an emptied cell keeps instead of becoming Vacant.
STICKY_WHEN_EMPTY = frozenset({CellStatus.UNDER_MAINTENANCE, CellStatus.CLOSED})

# Statuses that must always agree with occupancy.
OCCUPANCY_DERIVED = frozenset({CellStatus.VACANT, CellStatus.OCCUPIED, CellStatus.FULL})


def derive_status(occupancy: int, capacity: int) -> CellStatus:
    """Status implied by occupancy alone."""
    if occupancy <= 0:
        return CellStatus.VACANT
    if occupancy >= capacity:
        return CellStatus.FULL
    return CellStatus.OCCUPIED


def status_after_admit(status: CellStatus, new_occupancy: int, capacity: int) -> CellStatus:
    if new_occupancy == capacity:
        return CellStatus.FULL
    if status == CellStatus.VACANT:
        return CellStatus.OCCUPIED
    return status


def status_after_release(status: CellStatus, new_occupancy: int) -> CellStatus:
    if new_occupancy == 0:
        return status if status in STICKY_WHEN_EMPTY else CellStatus.VACANT
    if status == CellStatus.FULL:
        return CellStatus.OCCUPIED
    return status


def status_after_set(
    status: CellStatus,
    old_occupancy: int,
    new_occupancy: int,
    capacity: int,
) -> CellStatus:
    """A direct edit follows the admit or release rule by direction of change."""
    if new_occupancy > old_occupancy:
        return status_after_admit(status, new_occupancy, capacity)
    if new_occupancy < old_occupancy:
        return status_after_release(status, new_occupancy)
    return status


# ------------------------------------------------------------------ #
# Checks. Each raises before anything is written.
# ------------------------------------------------------------------ #

def validate_count(count: Any) -> int:
    if isinstance(count, bool) or not isinstance(count, int):
        raise ValidationError(
            "Count must be an integer",
            field_errors={"count": [f"expected integer, got {type(count).__name__}"]},
        )
    if count < 1:
        raise ValidationError(
            "Count must be at least 1",
            field_errors={"count": ["must be >= 1"]},
        )
    return count


def check_admit(cell_number: str, capacity: int, occupancy: int, count: int) -> int:
    """Return the occupancy after admitting `count`, or raise on overflow."""
    if occupancy + count > capacity:
        raise CapacityExceededError(cell_number, capacity, occupancy, count)
    return occupancy + count


def check_release(cell_number: str, occupancy: int, count: int) -> int:
    """Return the occupancy after releasing `count`, or raise if it would go negative."""
    if occupancy - count < 0:
        raise InvalidOperationError(
            f"Cannot release {count} from cell {cell_number}: only {occupancy} occupied",
            cell_number=cell_number,
            details={"occupancy": occupancy, "requested": count},
        )
    return occupancy - count


def check_set_occupancy(cell_number: str, capacity: int, new_value: Any) -> int:
    if isinstance(new_value, bool) or not isinstance(new_value, int):
        raise ValidationError(
            "Occupancy must be an integer",
            field_errors={"current_occupancy": ["expected integer"]},
            details={"cell_number": cell_number},
        )
    if not 0 <= new_value <= capacity:
        raise ValidationError(
            f"Occupancy for cell {cell_number} must be between 0 and {capacity}",
            field_errors={"current_occupancy": [f"must be in [0, {capacity}]"]},
            details={"cell_number": cell_number, "capacity": capacity, "value": new_value},
        )
    return new_value


def check_empty(cell_number: str, occupancy: int, action: str) -> None:
    if occupancy > 0:
        raise InvalidOperationError(
            f"Cannot {action} cell {cell_number} while it holds {occupancy} occupant(s)",
            cell_number=cell_number,
            details={"occupancy": occupancy},
        )


def coerce_status(value: Any) -> CellStatus:
    try:
        return CellStatus(value)
    except ValueError:
        allowed = [s.value for s in CellStatus]
        raise ValidationError(
            f"Unknown cell status: {value!r}",
            field_errors={"status": [f"must be one of {allowed}"]},
        ) from None


def check_status_update(
    cell_number: str,
    occupancy: int,
    capacity: int,
    requested: CellStatus,
) -> CellStatus:
    """
    Validate a manual status change.

    Vacant, Occupied and Full are accepted only when they match the status
    occupancy implies. Under Maintenance requires an empty cell. Cleaning
    and Closed are accepted at any time.
    """
    if requested in OCCUPANCY_DERIVED:
        derived = derive_status(occupancy, capacity)
        if requested != derived:
            raise InvalidOperationError(
                f"Cell {cell_number} cannot be marked {requested.value} "
                f"with {occupancy}/{capacity} occupied",
                cell_number=cell_number,
                details={"requested": requested.value, "derived": derived.value},
            )
    elif requested == CellStatus.UNDER_MAINTENANCE:
        check_empty(cell_number, occupancy, "put under maintenance")
    return requested
