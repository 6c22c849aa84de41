"""SQLAlchemy Base class for all models."""
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def import_models() -> None:
    """Import all models to register them with SQLAlchemy."""
    from cellblock.models import cell, prisoner  # noqa: F401
