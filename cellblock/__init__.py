"""Cell occupancy and placement records for correctional facility management."""

__version__ = "0.1.0"
