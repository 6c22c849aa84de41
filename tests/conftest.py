"""
Shared test fixtures for cellblock tests.

Every test gets its own SQLite file so service calls that open several
sessions (and threads) all see the same database.
"""
import pytest

from cellblock.config.settings import Settings
from cellblock.dependencies import build_container
from cellblock.services.base.events import CellEvent


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        ENVIRONMENT="testing",
        DATABASE_URL=f"sqlite:///{tmp_path / 'cells.db'}",
        LOG_FORMAT="text",
        OPERATION_TIMEOUT_SECONDS=5.0,
        HEALTH_CHECK_DELAY_SECONDS=0.0,
    )


@pytest.fixture
def container(settings):
    c = build_container(settings)
    yield c
    c.close()


@pytest.fixture
def cells(container):
    return container.cells


@pytest.fixture
def placements(container):
    return container.placements


class RecordingSink:
    """Collects every event the dispatcher delivers."""

    def __init__(self):
        self.events = []

    def __call__(self, event: CellEvent) -> None:
        self.events.append(event)

    def of_type(self, event_type):
        return [e for e in self.events if isinstance(e, event_type)]

    def clear(self):
        self.events.clear()


@pytest.fixture
def sink(container):
    recorder = RecordingSink()
    container.dispatcher.subscribe(recorder)
    return recorder


@pytest.fixture
def make_cell(cells):
    """Create a cell with sensible defaults."""

    def _make(number="C-101", cell_type="Double", capacity=2, security_level="Medium"):
        return cells.create(number, cell_type, capacity, security_level)

    return _make
