"""
Domain enumerations shared by models and schemas.

Values are the display strings stored in the database and shown to users.
"""

from enum import Enum

__all__ = [
    "CellType",
    "SecurityLevel",
    "CellStatus",
    "AvailabilityFilter",
    "PrisonerStatus",
]


class CellType(str, Enum):
    """Cell type enumeration."""

    SINGLE = "Single"
    DOUBLE = "Double"
    GENERAL = "General"
    SOLITARY = "Solitary"
    MEDICAL = "Medical"
    MAXIMUM_SECURITY = "Maximum Security"


class SecurityLevel(str, Enum):
    """Security level enumeration."""

    MINIMUM = "Minimum"
    MEDIUM = "Medium"
    MAXIMUM = "Maximum"
    SUPER_MAXIMUM = "Super Maximum"


class CellStatus(str, Enum):
    """Cell status enumeration."""

    OCCUPIED = "Occupied"
    VACANT = "Vacant"
    FULL = "Full"
    UNDER_MAINTENANCE = "Under Maintenance"
    CLEANING = "Cleaning"
    CLOSED = "Closed"


class AvailabilityFilter(str, Enum):
    """Availability choices offered by the cell management search."""

    ALL = "All"
    AVAILABLE = "Available"
    FULL = "Full"
    UNDER_MAINTENANCE = "Under Maintenance"


class PrisonerStatus(str, Enum):
    """Prisoner custody status."""

    IN_CUSTODY = "In Custody"
    RELEASED = "Released"
