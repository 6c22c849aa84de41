# cellblock/services/common/unit_of_work.py
"""
Unit of Work pattern implementation.

Provides transaction management and repository coordination
for the service layer with SQLAlchemy.
"""
from __future__ import annotations

import logging
from contextlib import AbstractContextManager
from typing import Any, Callable, Optional, Type, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from cellblock.core.exceptions import PersistenceError
from cellblock.repositories.base import BaseRepository

logger = logging.getLogger(__name__)

TRepository = TypeVar("TRepository", bound=BaseRepository)


class UnitOfWork(AbstractContextManager["UnitOfWork"]):
    """
    One session, one transaction.

    Usage:
        >>> with UnitOfWork(session_factory) as uow:
        ...     cells = uow.get_repo(CellRepository)
        ...     cell = cells.find_by_number("C-101", for_update=True)
        ...     cell.current_occupancy += 1
        ...     # Auto-commits on __exit__ if no exception

    Any exception rolls the transaction back. SQLAlchemy errors leave the
    block as `PersistenceError` with the driver error chained as the cause.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        *,
        auto_commit: bool = True,
    ) -> None:
        self._session_factory = session_factory
        self._auto_commit = auto_commit

        self.session: Optional[Session] = None
        self._committed: bool = False
        self._rolled_back: bool = False
        self._repo_cache: dict[Type[BaseRepository], BaseRepository] = {}

    # ------------------------------------------------------------------ #
    # Context manager protocol
    # ------------------------------------------------------------------ #

    def __enter__(self) -> "UnitOfWork":
        if self.session is not None:
            raise RuntimeError("UnitOfWork context already entered")

        self.session = self._session_factory()
        self._committed = False
        self._rolled_back = False
        self._repo_cache.clear()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> bool:
        if self.session is None:
            return False

        try:
            if exc_type is None:
                if self._auto_commit and not self._committed and not self._rolled_back:
                    self.commit()
            else:
                if not self._rolled_back:
                    self.session.rollback()
                    self._rolled_back = True
                    logger.debug("UnitOfWork rolled back due to %s", exc_type.__name__)
                if isinstance(exc_val, SQLAlchemyError):
                    logger.error("Database operation failed: %s", exc_val)
                    raise PersistenceError(
                        "Database operation failed", exc_val
                    ) from exc_val
        finally:
            self.session.close()
            self.session = None
            self._repo_cache.clear()

        return False

    # ------------------------------------------------------------------ #
    # Transaction control
    # ------------------------------------------------------------------ #

    def commit(self) -> None:
        """
        Explicitly commit the current transaction.

        Raises:
            RuntimeError: If called outside of context
            PersistenceError: If commit fails
        """
        if self.session is None:
            raise RuntimeError("UnitOfWork.commit() called outside of context")

        if self._committed:
            logger.warning("commit() called on already-committed transaction")
            return

        if self._rolled_back:
            raise RuntimeError("Cannot commit a rolled-back transaction")

        try:
            self.session.commit()
            self._committed = True
        except SQLAlchemyError as exc:
            logger.error("Commit failed: %s", exc)
            self.session.rollback()
            self._rolled_back = True
            raise PersistenceError("Failed to commit transaction", exc) from exc

    def rollback(self) -> None:
        if self.session is None:
            raise RuntimeError("UnitOfWork.rollback() called outside of context")

        if self._rolled_back:
            return

        self.session.rollback()
        self._rolled_back = True
        self._committed = False

    # ------------------------------------------------------------------ #
    # Repository factory
    # ------------------------------------------------------------------ #

    def get_repo(self, repo_cls: Type[TRepository]) -> TRepository:
        """Return a repository bound to this unit of work's session, cached per class."""
        if self.session is None:
            raise RuntimeError("UnitOfWork.get_repo() called outside of context")

        if repo_cls not in self._repo_cache:
            self._repo_cache[repo_cls] = repo_cls(self.session)
        return self._repo_cache[repo_cls]  # type: ignore[return-value]


class UnitOfWorkFactory:
    """Creates `UnitOfWork` instances bound to one session factory."""

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    def __call__(self, **kwargs: Any) -> UnitOfWork:
        return UnitOfWork(self._session_factory, **kwargs)
