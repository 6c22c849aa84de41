"""Result types, events and the event dispatcher shared by services."""

from cellblock.services.base.event_dispatcher import (
    DispatchedEvent,
    DispatchResult,
    EventDispatcher,
    EventSink,
)
from cellblock.services.base.events import (
    CellChanged,
    CellDeleted,
    CellEvent,
    CellOperationFailed,
)
from cellblock.services.base.service_result import (
    ErrorSeverity,
    ServiceError,
    ServiceResult,
)

__all__ = [
    "CellChanged",
    "CellDeleted",
    "CellEvent",
    "CellOperationFailed",
    "DispatchedEvent",
    "DispatchResult",
    "ErrorSeverity",
    "EventDispatcher",
    "EventSink",
    "ServiceError",
    "ServiceResult",
]
