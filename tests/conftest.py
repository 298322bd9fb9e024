"""Shared test configuration and fixtures."""
import os
from pathlib import Path
from typing import Generator

import pytest

# Set up test environment variables before any imports
os.environ.setdefault("TENANT_FIXTURES_LOG_LEVEL", "WARNING")

from tenant_fixtures.config import TenancyFixtureConfig
from tenant_fixtures.db.connection import DatabaseConnectionManager
from tenant_fixtures.db.tenant_repository import TenantRepository

TOKEN = "pest_test_abc123"


@pytest.fixture
def layout(tmp_path: Path) -> dict:
    """Database directory, storage root and seed directory under tmp_path."""
    database_dir = tmp_path / "srv" / "db"
    storage_base = tmp_path / "srv" / "storage"
    seed_dir = tmp_path / "seed"

    database_dir.mkdir(parents=True)
    (storage_base / "tenant").mkdir(parents=True)
    seed_dir.mkdir()
    (seed_dir / "seed.txt").write_text("seed")

    return {
        "root": tmp_path,
        "database_dir": database_dir,
        "storage_base": storage_base,
        "tenant_storage": storage_base / "tenant",
        "seed_dir": seed_dir,
    }


@pytest.fixture
def fixture_config(layout: dict) -> TenancyFixtureConfig:
    """Fixture configuration pointing at the tmp_path layout."""
    return TenancyFixtureConfig(
        database_dir=layout["database_dir"],
        storage_base=layout["storage_base"],
        seed_dir=layout["seed_dir"],
        central_database_url="sqlite://",
    )


@pytest.fixture
def connection_manager(fixture_config: TenancyFixtureConfig) -> Generator[DatabaseConnectionManager, None, None]:
    """In-memory central database with tables created."""
    manager = DatabaseConnectionManager(fixture_config.central_database_url)
    manager.create_tables()
    yield manager
    manager.dispose()


@pytest.fixture
def repository(connection_manager: DatabaseConnectionManager) -> TenantRepository:
    """Tenant repository over the in-memory central database."""
    return TenantRepository(connection_manager)


@pytest.fixture(scope="session")
def tenancy_config(tmp_path_factory: pytest.TempPathFactory) -> TenancyFixtureConfig:
    """Session configuration used by the tenant_fixture plugin fixture."""
    root = tmp_path_factory.mktemp("plugin")
    seed_dir = root / "seed"
    seed_dir.mkdir()
    (seed_dir / "seed.txt").write_text("seed")
    return TenancyFixtureConfig(
        database_dir=root / "database",
        storage_base=root / "storage",
        seed_dir=seed_dir,
        central_database_url=f"sqlite:///{root / 'central.sqlite'}",
    )
