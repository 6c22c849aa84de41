"""Prisoner schemas."""

from cellblock.schemas.prisoner.prisoner import PrisonerCreate, PrisonerRead

__all__ = ["PrisonerCreate", "PrisonerRead"]
