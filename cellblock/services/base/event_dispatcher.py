"""
In-process event dispatcher for cell notifications.

Sinks are plain callables. A sink that raises is logged and skipped so a
broken listener never undoes or masks a committed mutation.
"""

import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, List, Optional, Tuple, Type

from cellblock.core.logging import get_logger
from cellblock.services.base.events import CellEvent

EventSink = Callable[[CellEvent], None]


@dataclass
class DispatchedEvent:
    """Result of dispatching one event to every matching sink."""

    event: CellEvent
    delivered: int = 0
    errors: List[str] = field(default_factory=list)
    dispatched_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def dispatched(self) -> bool:
        return not self.errors


@dataclass
class DispatchResult:
    """Aggregated result of multiple event dispatches."""

    total: int
    successful: int
    failed: int
    events: List[DispatchedEvent] = field(default_factory=list)


class EventDispatcher:
    """
    Delivers events synchronously to registered sinks.

    Sinks may subscribe to every event or to a single event class (and its
    subclasses). Delivery order follows subscription order.
    """

    def __init__(self) -> None:
        self._sinks: List[Tuple[Type[CellEvent], EventSink]] = []
        self._guard = threading.Lock()
        self._logger = get_logger(self.__class__.__name__)

    def subscribe(
        self,
        sink: EventSink,
        event_type: Optional[Type[CellEvent]] = None,
    ) -> None:
        with self._guard:
            self._sinks.append((event_type or CellEvent, sink))

    def unsubscribe(self, sink: EventSink) -> None:
        with self._guard:
            self._sinks = [(t, s) for t, s in self._sinks if s is not sink]

    @property
    def sink_count(self) -> int:
        return len(self._sinks)

    def dispatch(self, event: CellEvent) -> DispatchedEvent:
        with self._guard:
            sinks = [sink for event_type, sink in self._sinks if isinstance(event, event_type)]

        result = DispatchedEvent(event=event)
        for sink in sinks:
            try:
                sink(event)
                result.delivered += 1
            except Exception as exc:
                result.errors.append(str(exc))
                self._logger.error(
                    "event_sink_failed",
                    event_type=type(event).__name__,
                    cell_number=event.cell_number,
                    error=str(exc),
                    exc_info=True,
                )
        return result

    def dispatch_many(self, events: List[CellEvent]) -> DispatchResult:
        dispatched = [self.dispatch(event) for event in events]
        successful = sum(1 for d in dispatched if d.dispatched)
        return DispatchResult(
            total=len(dispatched),
            successful=successful,
            failed=len(dispatched) - successful,
            events=dispatched,
        )
