"""
Database setup and session management
Supports SQLite (local dev, tests) and PostgreSQL (production)
"""
import logging
from contextlib import contextmanager

from fastapi import Request
from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker

logger = logging.getLogger(__name__)

# Base class for models
Base = declarative_base()


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """
    Owns the engine and session factory for one database.
    Built by the process entry point and handed to the app, never imported as a global.
    """

    def __init__(self, url: str, echo: bool = False):
        # Railway uses postgres:// but SQLAlchemy needs postgresql://
        if url.startswith("postgres://"):
            url = url.replace("postgres://", "postgresql://", 1)
        self.url = url

        if url.startswith("sqlite"):
            self.engine = create_engine(
                url,
                connect_args={"check_same_thread": False},  # Needed for SQLite
                echo=echo,
            )
            event.listen(self.engine, "connect", _enable_sqlite_foreign_keys)
            logger.info("Using SQLite database at %s", url)
        else:
            self.engine = create_engine(
                url,
                pool_size=5,
                max_overflow=10,
                pool_pre_ping=True,  # Verify connections before use
                echo=echo,
            )
            logger.info("Using PostgreSQL database")

        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    def init_db(self):
        """Create all tables"""
        # Import models so they register with Base.metadata
        from seoreport.models import database as _models  # noqa: F401
        Base.metadata.create_all(bind=self.engine)
        logger.info("Database tables initialized")

    @contextmanager
    def session(self):
        """Context-managed session for work outside a request (threads, scripts)"""
        db = self.SessionLocal()
        try:
            yield db
        finally:
            db.close()

    def dispose(self):
        self.engine.dispose()


def get_database(request: Request) -> Database:
    """Dependency returning the app's Database handle"""
    return request.app.state.database


def get_db(request: Request):
    """
    Dependency function to get database session
    Use with FastAPI Depends()
    """
    db = request.app.state.database.SessionLocal()
    try:
        yield db
    finally:
        db.close()
