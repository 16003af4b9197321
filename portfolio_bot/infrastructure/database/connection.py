"""
Database engine shared by the SQL repositories (sessions, menu, records).

PostgreSQL in production; any SQLAlchemy URL works, which is how the test
suite runs against in-memory SQLite.
"""

from sqlmodel import SQLModel, create_engine

from ...config import settings

# Connections idle between webhook bursts; check them before use.
engine = create_engine(settings.DATABASE_URL, echo=False, pool_pre_ping=True)


def init_db():
    """Creates any missing tables. Safe to run on every deploy."""
    from . import tables  # noqa: F401

    SQLModel.metadata.create_all(engine)
