"""Database initialization utilities."""
import logging

from sqlalchemy import inspect
from sqlalchemy.engine import Engine

from cellblock.db.base import Base, import_models

logger = logging.getLogger(__name__)


def init_db(engine: Engine) -> None:
    """
    Create any missing tables.

    Note: This is suitable for development/testing only.
    """
    try:
        import_models()

        existing_tables = set(inspect(engine).get_table_names())
        Base.metadata.create_all(bind=engine)
        created = sorted(set(Base.metadata.tables) - existing_tables)
        if created:
            logger.info("Database tables created: %s", ", ".join(created))
        else:
            logger.info("Database already initialized with %d tables", len(existing_tables))

    except Exception as e:
        logger.error(f"Error initializing database: {e}")
        raise


def drop_db(engine: Engine) -> None:
    """
    Drop all database tables.

    WARNING: This will delete all data! Use with caution.
    """
    try:
        import_models()
        Base.metadata.drop_all(bind=engine)
        logger.warning("All database tables dropped")
    except Exception as e:
        logger.error(f"Error dropping database: {e}")
        raise


def reset_db(engine: Engine) -> None:
    """Reset the database by dropping and recreating all tables."""
    logger.warning("Resetting database...")
    drop_db(engine)
    init_db(engine)
    logger.info("Database reset complete")
