"""Database package: declarative base, engine/session helpers, schema setup."""

from cellblock.db.base import Base
from cellblock.db.init_db import drop_db, init_db, reset_db
from cellblock.db.session import (
    SessionFactory,
    build_session_factory,
    create_db_engine,
)

__all__ = [
    "Base",
    "SessionFactory",
    "build_session_factory",
    "create_db_engine",
    "drop_db",
    "init_db",
    "reset_db",
]
