"""
Database connectivity check.

Executes `SELECT 1` with a bounded number of attempts and reports the
connection as "Connected" or "Disconnected".
"""

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, Optional

from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from cellblock.core.logging import get_logger


class ConnectionStatus(str, Enum):
    CONNECTED = "Connected"
    DISCONNECTED = "Disconnected"


@dataclass
class HealthReport:
    """Outcome of one health check."""
    status: ConnectionStatus
    attempts: int
    latency_ms: Optional[float] = None
    error: Optional[str] = None
    checked_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_healthy(self) -> bool:
        return self.status == ConnectionStatus.CONNECTED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "attempts": self.attempts,
            "latency_ms": self.latency_ms,
            "error": self.error,
            "checked_at": self.checked_at.isoformat(),
        }


class HealthCheckService:
    """Checks that the database answers a trivial query."""

    def __init__(
        self,
        engine: Engine,
        max_retries: int = 3,
        delay_seconds: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.engine = engine
        self.max_retries = max_retries
        self.delay_seconds = delay_seconds
        self._sleep = sleep
        self._logger = get_logger(self.__class__.__name__)
        self.last_report: Optional[HealthReport] = None

    def _ping(self) -> float:
        started = time.perf_counter()
        with self.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return (time.perf_counter() - started) * 1000

    def check(
        self,
        max_retries: Optional[int] = None,
        delay: Optional[float] = None,
    ) -> HealthReport:
        """
        Try the connection up to `max_retries` times, waiting `delay`
        seconds between attempts.
        """
        attempts_allowed = max(1, max_retries if max_retries is not None else self.max_retries)
        wait = self.delay_seconds if delay is None else delay
        last_error: Optional[str] = None

        for attempt in range(1, attempts_allowed + 1):
            try:
                latency = self._ping()
            except SQLAlchemyError as exc:
                last_error = str(exc)
                self._logger.warning(
                    f"Database health check failed (attempt {attempt}/{attempts_allowed})",
                    error=last_error,
                )
                if attempt < attempts_allowed:
                    self._sleep(wait)
                continue

            report = HealthReport(
                status=ConnectionStatus.CONNECTED,
                attempts=attempt,
                latency_ms=round(latency, 2),
            )
            self.last_report = report
            self._logger.debug("Database connected", latency_ms=report.latency_ms)
            return report

        report = HealthReport(
            status=ConnectionStatus.DISCONNECTED,
            attempts=attempts_allowed,
            error=last_error,
        )
        self.last_report = report
        self._logger.error("Database unreachable", attempts=attempts_allowed, error=last_error)
        return report

    def connection_status(self) -> ConnectionStatus:
        return self.check().status
