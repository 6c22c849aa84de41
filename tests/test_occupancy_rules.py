"""
Status transition and check functions, tested without a database.
"""
import pytest

from cellblock.core.exceptions import (
    CapacityExceededError,
    ErrorCode,
    InvalidOperationError,
    ValidationError,
)
from cellblock.schemas.common.enums import CellStatus
from cellblock.services.cell import occupancy_rules as rules


class TestDeriveStatus:
    @pytest.mark.parametrize(
        "occupancy, capacity, expected",
        [
            (0, 3, CellStatus.VACANT),
            (1, 3, CellStatus.OCCUPIED),
            (3, 3, CellStatus.FULL),
        ],
    )
    def test_derive(self, occupancy, capacity, expected):
        assert rules.derive_status(occupancy, capacity) == expected


class TestStatusAfterAdmit:
    def test_filling_cell_becomes_full(self):
        assert rules.status_after_admit(CellStatus.VACANT, 2, 2) == CellStatus.FULL

    def test_vacant_becomes_occupied(self):
        assert rules.status_after_admit(CellStatus.VACANT, 1, 2) == CellStatus.OCCUPIED

    def test_other_statuses_are_kept_below_capacity(self):
        for status in (CellStatus.OCCUPIED, CellStatus.CLEANING, CellStatus.UNDER_MAINTENANCE):
            assert rules.status_after_admit(status, 1, 3) == status

    def test_full_overrides_maintenance(self):
        assert rules.status_after_admit(CellStatus.UNDER_MAINTENANCE, 1, 1) == CellStatus.FULL


class TestStatusAfterRelease:
    def test_emptied_cell_becomes_vacant(self):
        assert rules.status_after_release(CellStatus.OCCUPIED, 0) == CellStatus.VACANT
        assert rules.status_after_release(CellStatus.FULL, 0) == CellStatus.VACANT

    def test_maintenance_and_closed_survive_emptying(self):
        assert rules.status_after_release(CellStatus.UNDER_MAINTENANCE, 0) == CellStatus.UNDER_MAINTENANCE
        assert rules.status_after_release(CellStatus.CLOSED, 0) == CellStatus.CLOSED

    def test_full_becomes_occupied(self):
        assert rules.status_after_release(CellStatus.FULL, 1) == CellStatus.OCCUPIED

    def test_partial_release_keeps_status(self):
        assert rules.status_after_release(CellStatus.CLEANING, 1) == CellStatus.CLEANING


class TestStatusAfterSet:
    def test_increase_uses_admit_rule(self):
        assert rules.status_after_set(CellStatus.VACANT, 0, 2, 2) == CellStatus.FULL

    def test_decrease_uses_release_rule(self):
        assert rules.status_after_set(CellStatus.FULL, 2, 0, 2) == CellStatus.VACANT

    def test_no_change_keeps_status(self):
        assert rules.status_after_set(CellStatus.CLOSED, 1, 1, 2) == CellStatus.CLOSED


class TestChecks:
    @pytest.mark.parametrize("count", [0, -1, 1.5, "1", True])
    def test_invalid_counts(self, count):
        with pytest.raises(ValidationError):
            rules.validate_count(count)

    def test_admit_overflow(self):
        with pytest.raises(CapacityExceededError) as exc_info:
            rules.check_admit("C-1", 2, 1, 2)
        assert exc_info.value.error_code == ErrorCode.CAPACITY_EXCEEDED
        assert exc_info.value.details["available"] == 1

    def test_admit_to_exact_capacity(self):
        assert rules.check_admit("C-1", 2, 1, 1) == 2

    def test_release_below_zero(self):
        with pytest.raises(InvalidOperationError):
            rules.check_release("C-1", 1, 2)

    @pytest.mark.parametrize("value", [-1, 3, None, "2"])
    def test_set_occupancy_out_of_range(self, value):
        with pytest.raises(ValidationError):
            rules.check_set_occupancy("C-1", 2, value)

    def test_check_empty(self):
        rules.check_empty("C-1", 0, "delete")
        with pytest.raises(InvalidOperationError):
            rules.check_empty("C-1", 1, "delete")


class TestStatusUpdateCheck:
    def test_derived_status_must_match(self):
        with pytest.raises(InvalidOperationError):
            rules.check_status_update("C-1", 1, 2, CellStatus.VACANT)
        assert rules.check_status_update("C-1", 1, 2, CellStatus.OCCUPIED) == CellStatus.OCCUPIED

    def test_maintenance_requires_empty(self):
        with pytest.raises(InvalidOperationError):
            rules.check_status_update("C-1", 1, 2, CellStatus.UNDER_MAINTENANCE)

    def test_cleaning_and_closed_always_allowed(self):
        assert rules.check_status_update("C-1", 2, 2, CellStatus.CLEANING) == CellStatus.CLEANING
        assert rules.check_status_update("C-1", 1, 2, CellStatus.CLOSED) == CellStatus.CLOSED

    def test_unknown_status_is_validation_error(self):
        with pytest.raises(ValidationError):
            rules.coerce_status("Flooded")
        assert rules.coerce_status("Full") == CellStatus.FULL
