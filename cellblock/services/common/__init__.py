"""Transaction and locking helpers shared by services."""

from cellblock.services.common.locking import KeyedLock
from cellblock.services.common.unit_of_work import UnitOfWork, UnitOfWorkFactory

__all__ = ["KeyedLock", "UnitOfWork", "UnitOfWorkFactory"]
