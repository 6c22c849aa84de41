"""
Read-only cell queries and aggregates.
"""
import pytest

from cellblock.core.exceptions import ValidationError
from cellblock.repositories import CellRepository
from cellblock.schemas.cell import CellFilter
from cellblock.schemas.common.enums import AvailabilityFilter, CellStatus, SecurityLevel


@pytest.fixture
def facility(cells):
    """
    A-1  Single  cap 1  Minimum         full
    B-2  Double  cap 2  Medium          occupied (1)
    C-3  General cap 10 Maximum         near capacity (9)
    D-4  Solitary cap 1 Super Maximum   under maintenance
    E-5  Maximum Security cap 4 Maximum vacant
    """
    cells.create("A-1", "Single", 1, "Minimum")
    cells.create("B-2", "Double", 2, "Medium")
    cells.create("C-3", "General", 10, "Maximum")
    cells.create("D-4", "Solitary", 1, "Super Maximum")
    cells.create("E-5", "Maximum Security", 4, "Maximum")
    cells.admit("A-1", 1)
    cells.admit("B-2", 1)
    cells.admit("C-3", 9)
    cells.set_under_maintenance("D-4")
    return cells


def _numbers(snapshots):
    return [c.cell_number for c in snapshots]


class TestListing:
    def test_list_all_sorted(self, facility):
        assert _numbers(facility.list_all()) == ["A-1", "B-2", "C-3", "D-4", "E-5"]

    def test_by_security_level(self, facility):
        assert _numbers(facility.list_by_security_level(SecurityLevel.MAXIMUM)) == ["C-3", "E-5"]

    def test_by_status(self, facility):
        assert _numbers(facility.list_by_status(CellStatus.FULL)) == ["A-1"]
        assert _numbers(facility.list_by_status(CellStatus.OCCUPIED)) == ["B-2", "C-3"]

    def test_available_excludes_full_and_maintenance(self, facility):
        assert _numbers(facility.list_available()) == ["B-2", "C-3", "E-5"]

    def test_with_available_space(self, facility):
        assert _numbers(facility.with_available_space(2)) == ["E-5"]
        assert _numbers(facility.with_available_space(1)) == ["B-2", "C-3", "E-5"]

    def test_with_available_space_rejects_zero(self, facility):
        with pytest.raises(ValidationError):
            facility.with_available_space(0)

    def test_near_capacity(self, facility):
        assert _numbers(facility.near_capacity()) == ["A-1", "C-3"]
        assert _numbers(facility.near_capacity(50.0)) == ["A-1", "B-2", "C-3"]

    def test_count(self, facility):
        assert facility.count() == 5


class TestSearchAndFilter:
    def test_search_matches_number_type_and_level(self, facility):
        assert _numbers(facility.search("c-3")) == ["C-3"]
        assert _numbers(facility.search("double")) == ["B-2"]
        # "Maximum" hits both security levels and the cell type
        assert _numbers(facility.search("maximum")) == ["C-3", "D-4", "E-5"]

    def test_wildcard_characters_match_literally(self, facility):
        assert facility.search("_") == []
        assert facility.search("%") == []
        assert _numbers(facility.filter_cells(search_term="%")) == []

        facility.create("F_6%", "Single", 1, "Minimum")
        assert _numbers(facility.search("f_6")) == ["F_6%"]
        assert _numbers(facility.search("6%")) == ["F_6%"]
        assert facility.search("f%6") == []

    def test_blank_search_lists_everything(self, facility):
        assert len(facility.search("   ")) == 5

    def test_combined_filter(self, facility):
        result = facility.filter_cells(
            CellFilter(
                search_term="max",
                security_level=SecurityLevel.MAXIMUM,
                availability=AvailabilityFilter.AVAILABLE,
            )
        )
        assert _numbers(result) == ["C-3", "E-5"]

    def test_filter_kwargs(self, facility):
        assert _numbers(facility.filter_cells(availability="Full")) == ["A-1"]
        assert _numbers(facility.filter_cells(availability="Under Maintenance")) == ["D-4"]
        assert _numbers(facility.filter_cells(status="Occupied", search_term="b")) == ["B-2"]

    def test_bad_filter(self, facility):
        with pytest.raises(ValidationError):
            facility.filter_cells(availability="Sometimes")


class TestAggregates:
    def test_totals(self, facility):
        assert facility.occupancy_totals() == [18, 11]
        assert facility.statistics() == [18, 11, 7]

    def test_utilization(self, facility):
        assert facility.utilization_percentage() == pytest.approx(11 / 18 * 100)

    def test_empty_facility(self, cells):
        assert cells.occupancy_totals() == [0, 0]
        assert cells.statistics() == [0, 0, 0]
        assert cells.utilization_percentage() == 0.0
        assert cells.list_all() == []

    def test_snapshot_derived_values(self, facility):
        cell = facility.get("C-3")
        assert cell.available_space == 1
        assert cell.occupancy_rate == pytest.approx(90.0)
        assert cell.has_available_space is True
        assert "9/10" in cell.summary()


class TestRepository:
    def test_count_by_status(self, facility, container):
        with container.uow_factory(auto_commit=False) as uow:
            counts = uow.get_repo(CellRepository).count_by_status()
        assert counts[CellStatus.FULL] == 1
        assert counts[CellStatus.OCCUPIED] == 2
        assert counts[CellStatus.UNDER_MAINTENANCE] == 1
        assert counts[CellStatus.VACANT] == 1
        assert counts[CellStatus.CLOSED] == 0

    def test_list_by_predicate_combines_criteria(self, facility, container):
        with container.uow_factory(auto_commit=False) as uow:
            repo = uow.get_repo(CellRepository)
            unavailable = [c.cell_number for c in repo.list_by_predicate(available=False)]
            maximum_vacant = [
                c.cell_number
                for c in repo.list_by_predicate(
                    security_level=SecurityLevel.MAXIMUM, status=CellStatus.VACANT
                )
            ]
        assert unavailable == ["A-1", "D-4"]
        assert maximum_vacant == ["E-5"]

    def test_find_by_number(self, facility, container):
        with container.uow_factory(auto_commit=False) as uow:
            repo = uow.get_repo(CellRepository)
            assert repo.find_by_number("B-2").current_occupancy == 1
            assert repo.find_by_number("missing") is None

    def test_delete_by_key(self, facility, container):
        with container.uow_factory() as uow:
            repo = uow.get_repo(CellRepository)
            assert repo.delete_by_key("E-5") is True
            assert repo.delete_by_key("E-5") is False
        assert facility.count() == 4
