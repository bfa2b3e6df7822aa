"""
Database configuration and session management.
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import create_engine, event, text, Enum as SQLEnum
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from app.config import settings

logger = logging.getLogger("nutriflow.database")

# Create SQLAlchemy Base
Base = declarative_base()


def _engine_options(url: str) -> dict:
    options = {"echo": settings.db_echo, "future": True}
    if url.startswith("sqlite"):
        # In-memory SQLite must share one connection across threads
        options["connect_args"] = {"check_same_thread": False}
        if ":memory:" in url or url.rstrip("/") == "sqlite:":
            options["poolclass"] = StaticPool
    else:
        options["pool_pre_ping"] = True
    return options


# Create engine
engine = create_engine(settings.database_url, **_engine_options(settings.database_url))

if engine.dialect.name == "sqlite":

    @event.listens_for(engine, "connect")
    def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

# Create session factory
SessionLocal = sessionmaker(bind=engine, autoflush=False, future=True)


def utcnow() -> datetime:
    """Timezone-aware current UTC time (column default)."""
    return datetime.now(timezone.utc)


def as_utc(value):
    """Normalize a datetime read back from the database to aware UTC.

    SQLite drops tzinfo on round-trip, Postgres keeps it.
    """
    if value is None or not isinstance(value, datetime):
        return value
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def enum_column(enum_cls, **kwargs):
    """Enum column storing the member *values* as plain strings."""
    return SQLEnum(
        enum_cls,
        values_callable=lambda members: [m.value for m in members],
        native_enum=False,
        validate_strings=True,
        length=32,
        **kwargs,
    )


def init_database():
    """Initialize database schema"""
    with engine.begin() as conn:
        Base.metadata.create_all(bind=conn)
        logger.info("Database tables created successfully")


def check_database() -> bool:
    """Connectivity check used by the health endpoint."""
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
    return True


def get_db_session():
    """Get database session (for FastAPI dependency injection)"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
