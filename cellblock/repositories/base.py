# cellblock/repositories/base.py
from __future__ import annotations

from typing import Any, Dict, Generic, Iterable, Optional, Sequence, Type, TypeVar

from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session

from cellblock.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Generic repository with common CRUD and query helpers.

    - Does not commit/rollback; caller manages transactions.
    - Records are keyed by a natural string key named by `key_attr`.
    """

    key_attr: str = "id"

    def __init__(self, session: Session, model: Type[ModelType]):
        self.session = session
        self.model = model

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #
    @property
    def _key_column(self):
        return getattr(self.model, self.key_attr)

    def _base_select(self) -> Select[tuple[ModelType]]:
        return select(self.model)

    def _apply_filters(
        self,
        stmt: Select,
        filters: Optional[Dict[str, Any]] = None,
    ) -> Select:
        if not filters:
            return stmt

        for key, value in filters.items():
            if value is None:
                continue
            column = getattr(self.model, key, None)
            if column is None:
                continue

            if isinstance(value, (list, tuple, set)):
                stmt = stmt.where(column.in_(value))
            else:
                stmt = stmt.where(column == value)
        return stmt

    # ------------------------------------------------------------------ #
    # Basic CRUD
    # ------------------------------------------------------------------ #
    def get(self, key: str, *, for_update: bool = False) -> Optional[ModelType]:
        stmt = self._base_select().where(self._key_column == key)
        if for_update:
            stmt = stmt.with_for_update()
        return self.session.execute(stmt).scalar_one_or_none()

    def get_multi(
        self,
        *,
        skip: int = 0,
        limit: Optional[int] = None,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[Iterable[Any]] = None,
    ) -> Sequence[ModelType]:
        stmt = self._apply_filters(self._base_select(), filters)
        stmt = stmt.order_by(*(order_by or (self._key_column,)))

        if skip:
            stmt = stmt.offset(skip)
        if limit:
            stmt = stmt.limit(limit)

        return self.session.execute(stmt).scalars().all()

    def count(self, filters: Optional[Dict[str, Any]] = None) -> int:
        stmt = self._apply_filters(select(func.count(self._key_column)), filters)
        return self.session.execute(stmt).scalar_one()

    def exists(self, key: str) -> bool:
        stmt = select(func.count(self._key_column)).where(self._key_column == key)
        return self.session.execute(stmt).scalar_one() > 0

    def create(self, obj_in: Dict[str, Any] | ModelType) -> ModelType:
        if isinstance(obj_in, self.model):
            db_obj = obj_in
        else:
            db_obj = self.model(**obj_in)  # type: ignore[arg-type]
        self.session.add(db_obj)
        # flush so constraint violations surface inside the transaction
        self.session.flush()
        return db_obj

    def update(self, db_obj: ModelType, obj_in: Dict[str, Any]) -> ModelType:
        for field, value in obj_in.items():
            if hasattr(db_obj, field) and field != self.key_attr:
                setattr(db_obj, field, value)

        self.session.flush()
        return db_obj

    def delete(self, db_obj: ModelType) -> None:
        self.session.delete(db_obj)
        self.session.flush()

    def delete_by_key(self, key: str) -> bool:
        obj = self.get(key)
        if obj is None:
            return False
        self.delete(obj)
        return True
