"""
Dashboard aggregates and their TTL cache.
"""
import pytest
from sqlalchemy import text

from cellblock.core.exceptions import CapacityExceededError
from cellblock.schemas.common.enums import CellStatus
from cellblock.services.base.cache_service import CacheService
from cellblock.services.cell import CellStatisticsService


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class TestCacheService:
    def test_entries_expire(self):
        clock = FakeClock()
        cache = CacheService(namespace="t", default_ttl=10, clock=clock)
        cache.set("k", 1)
        clock.advance(9.9)
        assert cache.get("k") == 1
        clock.advance(0.1)
        assert cache.get("k") is None

    def test_get_or_set_computes_once(self):
        cache = CacheService(default_ttl=60, clock=FakeClock())
        calls = []

        def factory():
            calls.append(1)
            return "value"

        assert cache.get_or_set("k", factory) == "value"
        assert cache.get_or_set("k", factory) == "value"
        assert len(calls) == 1

    def test_delete(self):
        cache = CacheService(clock=FakeClock())
        cache.set("k", None)
        assert cache.delete("k") is True
        assert cache.delete("k") is False

    def test_delete_during_compute_skips_store(self):
        cache = CacheService(clock=FakeClock())

        def factory():
            cache.delete("k")
            return "stale"

        assert cache.get_or_set("k", factory) == "stale"
        assert cache.get("k") is None
        assert cache.get_or_set("k", lambda: "fresh") == "fresh"
        assert cache.get("k") == "fresh"


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def stats(container, clock):
    return CellStatisticsService(
        container.uow_factory,
        CacheService(namespace="test", default_ttl=300, clock=clock),
        container.dispatcher,
        near_capacity_threshold=90.0,
    )


class TestDashboard:
    def test_empty_facility(self, stats):
        dashboard = stats.dashboard()
        assert dashboard.total_cells == 0
        assert dashboard.occupancy.as_list() == [0, 0, 0]
        assert dashboard.occupancy.utilization_percentage == 0.0
        assert dashboard.near_capacity == []
        assert set(dashboard.status_counts.values()) == {0}

    def test_aggregates(self, cells, stats):
        cells.create("A", "Single", 1, "Minimum")
        cells.create("B", "General", 4, "Medium")
        cells.admit("A", 1)
        cells.admit("B", 1)

        dashboard = stats.dashboard()
        assert dashboard.total_cells == 2
        assert dashboard.occupancy.as_list() == [5, 2, 3]
        assert dashboard.occupancy.utilization_percentage == pytest.approx(40.0)
        assert dashboard.status_counts[CellStatus.FULL] == 1
        assert dashboard.status_counts[CellStatus.OCCUPIED] == 1
        assert dashboard.near_capacity == ["A"]

    def test_cached_until_ttl(self, container, cells, stats, clock):
        cells.create("A", "Single", 1, "Minimum")
        first = stats.dashboard()

        # Writes that bypass the service do not invalidate the cache.
        with container.uow_factory() as uow:
            uow.session.execute(text("UPDATE cells SET current_occupancy = 1"))
        clock.advance(299)
        assert stats.dashboard() is first

        clock.advance(1)
        assert stats.dashboard().occupancy.total_occupancy == 1

    def test_mutation_invalidates(self, cells, stats):
        cells.create("A", "Single", 1, "Minimum")
        first = stats.dashboard()
        cells.admit("A", 1)
        second = stats.dashboard()
        assert second is not first
        assert second.occupancy.total_occupancy == 1

    def test_mutation_during_compute_is_not_cached(self, cells, stats, monkeypatch):
        cells.create("A", "Single", 1, "Minimum")
        compute = stats._compute

        def compute_then_admit():
            snapshot = compute()
            cells.admit("A", 1)
            return snapshot

        monkeypatch.setattr(stats, "_compute", compute_then_admit)
        assert stats.dashboard().occupancy.total_occupancy == 0

        monkeypatch.setattr(stats, "_compute", compute)
        assert stats.dashboard().occupancy.total_occupancy == 1

    def test_failed_mutation_keeps_cache(self, cells, stats):
        cells.create("A", "Single", 1, "Minimum")
        first = stats.dashboard()
        with pytest.raises(CapacityExceededError):
            cells.admit("A", 2)
        assert stats.dashboard() is first

    def test_refresh(self, cells, stats):
        first = stats.dashboard()
        assert stats.dashboard(refresh=True) is not first

    def test_container_statistics_service(self, container, cells):
        cells.create("A", "Single", 1, "Minimum")
        assert container.statistics.dashboard().total_cells == 1
