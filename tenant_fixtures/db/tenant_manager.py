"""Database management for file-based tenant database creation."""
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Tuple

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Connection
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import NullPool

from tenant_fixtures.config import TenancyFixtureConfig, get_fixture_config

logger = logging.getLogger(__name__)


class TenantDatabaseManager:
    """Manages creation of SQLite tenant database files."""

    def __init__(self, config: Optional[TenancyFixtureConfig] = None):
        """Initialize tenant database manager.

        Args:
            config: Fixture configuration (journal mode). Defaults to the
                    environment configuration.
        """
        self.config = config or get_fixture_config()

    @contextmanager
    def _get_connection(self, database_path: Path) -> Iterator[Connection]:
        """Open a short-lived connection to a SQLite database file."""
        engine = create_engine(f"sqlite:///{database_path}", poolclass=NullPool)
        try:
            with engine.connect() as conn:
                yield conn
        except SQLAlchemyError as e:
            logger.error(f"Database connection error: {e}")
            raise
        finally:
            engine.dispose()

    def create_database(self, database_path: Path) -> bool:
        """Create a SQLite database file.

        Args:
            database_path: Full path of the database file.

        Returns:
            True if the database was created, False if it already existed.

        Raises:
            SQLAlchemyError: If the database cannot be created.
            OSError: If the parent directory cannot be created.
        """
        if not database_path:
            raise ValueError("Database path cannot be empty")
        database_path = Path(database_path)

        if self.database_exists(database_path):
            logger.warning(f"Database '{database_path}' already exists")
            return False

        database_path.parent.mkdir(parents=True, exist_ok=True)

        with self._get_connection(database_path) as conn:
            conn.execute(text(f"PRAGMA journal_mode={self.config.journal_mode}"))
            # Forces SQLite to write the file header
            conn.execute(text("PRAGMA user_version=1"))
            conn.commit()

        logger.info(f"Database '{database_path}' created successfully")
        return True

    def database_exists(self, database_path: Path) -> bool:
        """Check if a database file exists."""
        return Path(database_path).is_file()

    def test_connection(self, database_path: Path) -> Tuple[bool, Optional[str]]:
        """Test connection to a tenant database.

        Returns:
            Tuple of (success, error_message).
        """
        if not self.database_exists(database_path):
            return False, f"Database file '{database_path}' does not exist"

        try:
            with self._get_connection(Path(database_path)) as conn:
                conn.execute(text("SELECT 1"))
            return True, None
        except SQLAlchemyError as e:
            return False, str(e)
