"""Database configuration and session management.

The relational store is any SQLAlchemy URL; SQLite is the default for a
single-office deployment. For SQLite the engine is configured the same
way on every connection:

    - **WAL (Write-Ahead Logging)**: readers are not blocked while a
      checklist submission is being written.

    - **Foreign Keys**: SQLite ships with foreign key enforcement off.
      It is switched on so that a ChecklistPhoto can never point at a
      missing ChecklistItem.

    - **check_same_thread=False**: FastAPI may hand a session to a
      different worker thread than the one that opened the connection.
"""

from sqlalchemy import event as sa_event
from sqlmodel import Session, SQLModel, create_engine

from homewatch.core.config import settings

is_sqlite = settings.database_url.startswith("sqlite")
connect_args = {"check_same_thread": False} if is_sqlite else {}

engine = create_engine(
    settings.database_url,
    connect_args=connect_args,
    echo=settings.debug,  # Log SQL statements when DEBUG=true
)


if is_sqlite:

    @sa_event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        """Configure SQLite pragmas on each new connection.

        These settings are connection-level, not database-level, so they
        must be set each time a new connection is established from the pool.
        """
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def create_db_and_tables():
    """Create all database tables."""
    SQLModel.metadata.create_all(engine)


def get_session():
    """Dependency for getting database session."""
    with Session(engine) as session:
        yield session
