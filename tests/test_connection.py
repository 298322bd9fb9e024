"""Tests for the central database connection manager."""
import pytest
from sqlalchemy import inspect
from sqlalchemy.exc import OperationalError

from tenant_fixtures.db.connection import DatabaseConnectionManager
from tenant_fixtures.db.models import Tenant


class TestDatabaseConnectionManager:
    """Test DatabaseConnectionManager."""

    def test_create_and_drop_tables(self, connection_manager: DatabaseConnectionManager) -> None:
        """Test tenant and domain tables can be dropped and recreated."""
        assert {"tenants", "domains"} <= set(inspect(connection_manager.engine).get_table_names())

        connection_manager.drop_tables()

        assert inspect(connection_manager.engine).get_table_names() == []
        with pytest.raises(OperationalError):
            with connection_manager.get_session() as session:
                session.query(Tenant).count()

        connection_manager.create_tables()

        with connection_manager.get_session() as session:
            assert session.query(Tenant).count() == 0

    def test_health_check(self, connection_manager: DatabaseConnectionManager) -> None:
        """Test a reachable database is healthy."""
        assert connection_manager.health_check() is True

    def test_health_check_unreachable_database(self, tmp_path) -> None:
        """Test an unreachable database reports unhealthy instead of raising."""
        manager = DatabaseConnectionManager(f"sqlite:///{tmp_path / 'missing' / 'central.sqlite'}")

        try:
            assert manager.health_check() is False
        finally:
            manager.dispose()

    def test_session_rolls_back_on_error(self, connection_manager: DatabaseConnectionManager) -> None:
        """Test a failing unit of work is not committed."""
        with pytest.raises(RuntimeError):
            with connection_manager.get_session() as session:
                session.add(Tenant(id="pest_test_a", name="Tenant Test"))
                session.flush()
                raise RuntimeError("boom")

        with connection_manager.get_session() as session:
            assert session.get(Tenant, "pest_test_a") is None
