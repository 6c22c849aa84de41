"""Database engine and session management."""
from typing import Callable

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

SessionFactory = Callable[[], Session]


def create_db_engine(database_url: str, echo: bool = False) -> Engine:
    """
    Build an engine for `database_url`.

    SQLite connections are shared across worker threads, and an in-memory
    database is pinned to a single connection so every session sees it.
    """
    if database_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in database_url or database_url.rstrip("/") == "sqlite:":
            kwargs["poolclass"] = StaticPool
        return create_engine(database_url, echo=echo, **kwargs)

    return create_engine(database_url, echo=echo, pool_pre_ping=True)


def build_session_factory(engine: Engine) -> sessionmaker:
    """Create the session factory used by every unit of work."""
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)

