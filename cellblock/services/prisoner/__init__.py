"""Prisoner placement."""

from cellblock.services.prisoner.placement_service import PlacementService

__all__ = ["PlacementService"]
