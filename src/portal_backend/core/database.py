"""Database connection and session management."""

from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool
import structlog

from .config import settings
from .base import Base

logger = structlog.get_logger(__name__)


def build_engine(database_url: str, echo: bool = False) -> Engine:
    """Create an engine suited to the database dialect.

    SQLite gets foreign-key enforcement switched on (response cascades rely
    on it); an in-memory SQLite database is pinned to a single connection so
    every session sees the same data.
    """
    if database_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in database_url or database_url == "sqlite://":
            kwargs["poolclass"] = StaticPool
        engine = create_engine(database_url, echo=echo, **kwargs)

        @event.listens_for(engine, "connect")
        def _configure_sqlite_connection(dbapi_connection, connection_record):
            # Let SQLAlchemy issue BEGIN itself so SAVEPOINTs behave.
            dbapi_connection.isolation_level = None
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        @event.listens_for(engine, "begin")
        def _begin_sqlite_transaction(conn):
            conn.exec_driver_sql("BEGIN")

        return engine

    return create_engine(
        database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
        pool_timeout=30,
        pool_recycle=3600,
        pool_pre_ping=True,
        echo=echo,
    )


class DatabaseManager:
    """Manages the engine and session factory."""

    def __init__(self, database_url: str) -> None:
        """Initialize database manager.

        Args:
            database_url: SQLAlchemy connection URL
        """
        self.database_url = database_url
        self.engine: Optional[Engine] = None
        self.SessionLocal: Optional[sessionmaker] = None

    def initialize(self) -> None:
        """Initialize the database engine and session factory."""
        if self.engine is not None:
            logger.warning("Database engine already initialized")
            return

        self.engine = build_engine(self.database_url, echo=settings.log_level == "DEBUG")
        self.SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
            bind=self.engine
        )

        logger.info("Database engine initialized", dialect=self.engine.dialect.name)

    def close(self) -> None:
        """Close database engine and dispose of connection pool."""
        if self.engine:
            self.engine.dispose()
            logger.info("Database engine closed")
            self.engine = None
            self.SessionLocal = None

    @contextmanager
    def get_session(self) -> Generator[Session, None, None]:
        """Get database session with automatic cleanup.

        Yields:
            Database session

        Raises:
            RuntimeError: If database is not initialized
        """
        if self.SessionLocal is None:
            raise RuntimeError("Database not initialized. Call initialize() first.")

        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def create_tables(self) -> None:
        """Create all database tables."""
        if self.engine is None:
            raise RuntimeError("Database not initialized. Call initialize() first.")

        # Register every model on the metadata before creating.
        import portal_backend.models  # noqa: F401

        Base.metadata.create_all(bind=self.engine)
        logger.info("Database tables created")

    def health_check(self) -> bool:
        """Check database connectivity."""
        try:
            if self.engine is None:
                return False

            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error("Database health check failed", error=str(e))
            return False


@contextmanager
def transaction(db: Session) -> Generator[Session, None, None]:
    """Run a unit of work: commit on success, roll back on any failure.

    Every service operation goes through here so a multi-row change (an
    ordinal shift plus the moved row, a status change plus its audit row)
    lands in one commit or not at all.
    """
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise


# Global database manager instance
db_manager = DatabaseManager(settings.database_url)


def get_db() -> Generator[Session, None, None]:
    """Dependency for FastAPI to get database session.

    Yields:
        Database session
    """
    with db_manager.get_session() as session:
        yield session


def init_db() -> None:
    """Initialize the database connection and create missing tables."""
    db_manager.initialize()
    db_manager.create_tables()


def close_db() -> None:
    """Close database connections."""
    db_manager.close()
