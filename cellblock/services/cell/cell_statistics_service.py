"""
Dashboard aggregates over all cells, cached for a fixed TTL.
"""

from datetime import datetime, timezone

from cellblock.core.logging import get_logger
from cellblock.repositories.cell_repository import CellRepository
from cellblock.schemas.cell import DashboardStatistics, OccupancyStatistics
from cellblock.services.base.cache_service import CacheService
from cellblock.services.base.event_dispatcher import EventDispatcher
from cellblock.services.base.events import CellChanged, CellDeleted, CellEvent
from cellblock.services.common.unit_of_work import UnitOfWorkFactory

DASHBOARD_KEY = "dashboard"


class CellStatisticsService:
    """
    Computes `DashboardStatistics` and caches the result.

    Subscribes to the dispatcher so that any committed cell change drops
    the cached snapshot.
    """

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        cache: CacheService,
        dispatcher: EventDispatcher,
        near_capacity_threshold: float = 90.0,
    ):
        self._uow_factory = uow_factory
        self._cache = cache
        self.near_capacity_threshold = near_capacity_threshold
        self._logger = get_logger(self.__class__.__name__)
        dispatcher.subscribe(self._on_cell_event, CellChanged)
        dispatcher.subscribe(self._on_cell_event, CellDeleted)

    def dashboard(self, *, refresh: bool = False) -> DashboardStatistics:
        if refresh:
            self.invalidate()
        return self._cache.get_or_set(DASHBOARD_KEY, self._compute)

    def invalidate(self) -> None:
        if self._cache.delete(DASHBOARD_KEY):
            self._logger.debug("Dashboard statistics invalidated")

    def _on_cell_event(self, event: CellEvent) -> None:
        self.invalidate()

    def _compute(self) -> DashboardStatistics:
        with self._uow_factory(auto_commit=False) as uow:
            repo = uow.get_repo(CellRepository)
            total_capacity, total_occupancy = repo.occupancy_totals()
            stats = DashboardStatistics(
                total_cells=repo.count(),
                occupancy=OccupancyStatistics(
                    total_capacity=total_capacity,
                    total_occupancy=total_occupancy,
                ),
                status_counts=repo.count_by_status(),
                near_capacity=[
                    cell.cell_number
                    for cell in repo.list_near_capacity(self.near_capacity_threshold)
                ],
                generated_at=datetime.now(timezone.utc),
            )
        self._logger.info(
            "Dashboard statistics computed",
            total_cells=stats.total_cells,
            utilization=stats.occupancy.utilization_percentage,
        )
        return stats
