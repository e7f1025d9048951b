from contextlib import contextmanager
from typing import Iterator

from fastapi import Request
from sqlalchemy import event, text
from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

# Import all models to ensure they are registered with SQLModel metadata
from .models import SessionRecord, Task, User  # noqa: F401


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_db_engine(database_url: str) -> Engine:
    """Build the process-wide engine; callers own it and pass it along."""
    if database_url.startswith("sqlite"):
        engine = create_engine(
            database_url,
            echo=False,
            connect_args={"check_same_thread": False},
        )
        # Task -> User cascade relies on SQLite enforcing foreign keys.
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        return engine

    return create_engine(database_url, echo=False, pool_pre_ping=True)


def create_tables(engine: Engine) -> None:
    """Create all database tables."""
    SQLModel.metadata.create_all(bind=engine)


def ping(engine: Engine) -> bool:
    with engine.connect() as conn:
        return conn.execute(text("SELECT 1")).scalar() == 1


def get_db(request: Request) -> Iterator[Session]:
    """Dependency to get a database session bound to the app's engine."""
    with Session(request.app.state.engine) as session:
        yield session


@contextmanager
def get_session(engine: Engine) -> Iterator[Session]:
    """Get a database session (context manager style).

    This is a convenience function for use outside of FastAPI dependencies.
    Usage:
        with get_session(engine) as session:
            # do something with session
    """
    session = Session(engine)
    try:
        yield session
    finally:
        session.close()
