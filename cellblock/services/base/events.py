"""
Notification events emitted after every cell mutation attempt.
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from cellblock.core.exceptions import ErrorCode
from cellblock.schemas.common.enums import CellStatus


class CellEvent(BaseModel):
    """Base class for cell notifications."""

    model_config = ConfigDict(frozen=True)

    cell_number: Optional[str]
    occurred_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class CellChanged(CellEvent):
    """A mutation was committed; carries the cell's new state."""

    new_occupancy: int
    new_status: CellStatus


class CellOperationFailed(CellEvent):
    """A mutation was rejected or failed; nothing was written."""

    operation: str
    error_kind: ErrorCode
    message: str


class CellDeleted(CellEvent):
    """A cell record was removed."""
