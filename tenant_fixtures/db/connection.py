"""Database connection manager for the central tenant database."""
from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import NullPool, StaticPool

from tenant_fixtures.config import get_fixture_config

from .models.tenancy import Base


def _is_memory_sqlite(database_url: str) -> bool:
    url = make_url(database_url)
    return url.get_backend_name() == "sqlite" and url.database in (None, "", ":memory:")


class DatabaseConnectionManager:
    """Manages database connections for tenant and domain rows."""

    def __init__(self, database_url: Optional[str] = None):
        """Initialize database connection manager."""
        self.database_url = database_url or get_fixture_config().central_database_url

        if not self.database_url:
            raise ValueError(
                "central_database_url is required. "
                "Format: sqlite:///path/to/central.sqlite"
            )

        # An in-memory SQLite database only lives as long as its single connection
        if _is_memory_sqlite(self.database_url):
            self.engine = create_engine(
                self.database_url,
                poolclass=StaticPool,
                connect_args={"check_same_thread": False},
                echo=False,
            )
        else:
            self.engine = create_engine(
                self.database_url,
                poolclass=NullPool,
                echo=False,
            )

        self._configure_connection()

        self.SessionLocal = sessionmaker(
            bind=self.engine,
            autocommit=False,
            autoflush=False,
            expire_on_commit=False
        )

    def _configure_connection(self) -> None:
        """Configure database connection settings."""
        if self.engine.dialect.name != "sqlite":
            return

        @event.listens_for(self.engine, "connect")
        def enable_foreign_keys(dbapi_conn, connection_record):
            """Domain rows cascade with their tenant only when FKs are enforced."""
            cursor = dbapi_conn.cursor()
            try:
                cursor.execute("PRAGMA foreign_keys=ON")
            finally:
                cursor.close()

    def create_tables(self) -> None:
        """Create tenant and domain tables."""
        Base.metadata.create_all(bind=self.engine)

    def drop_tables(self) -> None:
        """Drop tenant and domain tables."""
        Base.metadata.drop_all(bind=self.engine)

    @contextmanager
    def get_session(self) -> Iterator[Session]:
        """Get a database session with automatic cleanup."""
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def health_check(self) -> bool:
        """Check if database connection is healthy."""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except Exception:
            return False

    def dispose(self) -> None:
        """Release pooled connections."""
        self.engine.dispose()


# Global connection manager instance
_connection_manager: Optional[DatabaseConnectionManager] = None


def get_connection_manager() -> DatabaseConnectionManager:
    """Get or create the global database connection manager."""
    global _connection_manager
    if _connection_manager is None:
        _connection_manager = DatabaseConnectionManager()
    return _connection_manager
