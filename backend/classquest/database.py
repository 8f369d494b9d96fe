"""Database engine and helpers.

The engine points at `DATABASE_URL` when it is set and otherwise at a
local SQLite file (`app.db` next to the `classquest` package). Tables are
created from SQLModel metadata; a real deployment should manage schema
changes with alembic instead.
"""

from pathlib import Path

from sqlmodel import SQLModel, Session, create_engine

from .config import settings

BASE = Path(__file__).resolve().parent.parent
DB_URL = settings.DATABASE_URL or f"sqlite:///{BASE / 'app.db'}"

_connect_args = {"check_same_thread": False} if DB_URL.startswith("sqlite") else {}
engine = create_engine(DB_URL, echo=False, connect_args=_connect_args)


def create_db_and_tables():
    """Create every table registered on the SQLModel metadata."""
    # models must be imported so their tables are registered
    from . import models  # noqa: F401

    SQLModel.metadata.create_all(engine)


def get_session():
    """Yield a database `Session` for FastAPI dependency injection."""
    with Session(engine) as session:
        yield session
