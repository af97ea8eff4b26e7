"""Database configuration and session management."""

import logging
import re
from collections.abc import Generator
from typing import Any

from fastapi import Request
from sqlalchemy import Engine, create_engine, event, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from rapper_dashboard.exceptions import StorageError

logger = logging.getLogger(__name__)

Base: Any = declarative_base()


def enable_sqlite_savepoints(engine: Engine) -> None:
    """Make pysqlite honour SAVEPOINT by emitting BEGIN ourselves.

    pysqlite defers BEGIN until the first DML statement, which breaks nested
    transactions used for per-entry isolation during cart sync.
    """

    @event.listens_for(engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")


def mask_url(url: str) -> str:
    """Hide credentials in a database URL before logging it."""
    return re.sub(r"//[^/@]*@", "//***:***@", url)


class Database:
    """Owns the engine and session factory for one backing store.

    Created once at startup and handed to whoever needs sessions; nothing in
    the application reaches for a module-level connection.
    """

    def __init__(self, url: str) -> None:
        self.url = url
        connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
        engine_kwargs: dict[str, Any] = {"pool_pre_ping": True, "connect_args": connect_args}
        if not url.startswith("sqlite"):
            engine_kwargs.update(pool_size=5, max_overflow=10)
        self.engine = create_engine(url, **engine_kwargs)
        if url.startswith("sqlite"):
            enable_sqlite_savepoints(self.engine)
        self.session_factory = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    def connect(self) -> None:
        """Verify the store is reachable, raising StorageError otherwise."""
        try:
            with self.engine.connect() as connection:
                connection.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            logger.error(f"Failed to connect to database {mask_url(self.url)}: {e}")
            raise StorageError(f"No se pudo conectar a la base de datos: {e}") from e
        logger.info(f"Database connected: {mask_url(self.url)}")

    def create_all(self) -> None:
        """Create all tables that do not exist yet."""
        # Import all models here so they are registered with Base.metadata
        from rapper_dashboard import models  # noqa: F401

        Base.metadata.create_all(bind=self.engine)

    def session(self) -> Session:
        return self.session_factory()

    def close(self) -> None:
        self.engine.dispose()
        logger.info("Database connection closed")


def get_db(request: Request) -> Generator[Session, None, None]:
    """Dependency that provides a database session."""
    db = request.app.state.database.session()
    try:
        yield db
    finally:
        db.close()
