# cellblock/dependencies.py
"""
Explicit wiring of the service graph.

`build_container` constructs each collaborator once and hands references to
the services that need them; nothing is looked up through globals.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from cellblock.config.settings import Settings, get_settings
from cellblock.core.logging import configure_logging, get_logger
from cellblock.db.init_db import init_db
from cellblock.db.session import build_session_factory, create_db_engine
from cellblock.services.background import BackgroundLoader, HealthCheckService
from cellblock.services.base.cache_service import CacheService
from cellblock.services.base.event_dispatcher import EventDispatcher
from cellblock.services.cell import CellService, CellStatisticsService
from cellblock.services.common import KeyedLock, UnitOfWorkFactory
from cellblock.services.prisoner import PlacementService

logger = get_logger(__name__)


@dataclass
class Container:
    """Every long-lived collaborator of one application instance."""

    settings: Settings
    engine: Engine
    session_factory: sessionmaker
    uow_factory: UnitOfWorkFactory
    dispatcher: EventDispatcher
    cells: CellService
    placements: PlacementService
    statistics: CellStatisticsService
    loader: BackgroundLoader
    health: HealthCheckService

    def close(self) -> None:
        """Stop background work and release database connections."""
        self.loader.shutdown(wait=True)
        self.engine.dispose()

    def __enter__(self) -> "Container":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


def build_container(
    settings: Optional[Settings] = None,
    *,
    engine: Optional[Engine] = None,
    setup_logging: bool = False,
    create_schema: bool = True,
) -> Container:
    """
    Build the application services from `settings`.

    Args:
        settings: Runtime settings (defaults to `get_settings()`)
        engine: Existing engine to reuse instead of creating one
        setup_logging: Configure stdlib logging and structlog first
        create_schema: Create missing tables
    """
    settings = settings or get_settings()
    if setup_logging:
        configure_logging(settings)

    engine = engine or create_db_engine(settings.DATABASE_URL, echo=settings.DATABASE_ECHO)
    if create_schema:
        init_db(engine)

    session_factory = build_session_factory(engine)
    uow_factory = UnitOfWorkFactory(session_factory)
    dispatcher = EventDispatcher()

    cells = CellService(
        uow_factory,
        dispatcher,
        locks=KeyedLock(),
        near_capacity_threshold=settings.NEAR_CAPACITY_THRESHOLD,
    )
    statistics = CellStatisticsService(
        uow_factory,
        CacheService(namespace="cells", default_ttl=settings.STATS_CACHE_TTL_SECONDS),
        dispatcher,
        near_capacity_threshold=settings.NEAR_CAPACITY_THRESHOLD,
    )

    container = Container(
        settings=settings,
        engine=engine,
        session_factory=session_factory,
        uow_factory=uow_factory,
        dispatcher=dispatcher,
        cells=cells,
        placements=PlacementService(cells, uow_factory),
        statistics=statistics,
        loader=BackgroundLoader(
            max_workers=settings.BACKGROUND_MAX_WORKERS,
            timeout=settings.OPERATION_TIMEOUT_SECONDS,
        ),
        health=HealthCheckService(
            engine,
            max_retries=settings.HEALTH_CHECK_RETRIES,
            delay_seconds=settings.HEALTH_CHECK_DELAY_SECONDS,
        ),
    )
    logger.info(
        "Container built",
        environment=settings.ENVIRONMENT.value,
        database=engine.url.render_as_string(hide_password=True),
    )
    return container
