"""Background loads and health checks."""

from cellblock.services.background.background_loader import (
    BackgroundLoader,
    BackgroundTask,
    TaskStatus,
)
from cellblock.services.background.health_check_service import (
    ConnectionStatus,
    HealthCheckService,
    HealthReport,
)

__all__ = [
    "BackgroundLoader",
    "BackgroundTask",
    "ConnectionStatus",
    "HealthCheckService",
    "HealthReport",
    "TaskStatus",
]
