"""Tenant footprint provisioning for test setup."""
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional

from tenant_fixtures.config import TenancyFixtureConfig, get_fixture_config
from tenant_fixtures.db.models import Tenant
from tenant_fixtures.db.tenant_manager import TenantDatabaseManager
from tenant_fixtures.db.tenant_repository import TenantRepository
from tenant_fixtures.exceptions import ProvisioningError
from tenant_fixtures.services.filesystem import LocalFilesystem
from tenant_fixtures.services.path_resolver import resolve_database_path, resolve_storage_path

logger = logging.getLogger(__name__)


@contextmanager
def provisioning_step(step: str, tenant_id: str) -> Iterator[None]:
    """Turn any failure inside a provisioning step into a ProvisioningError."""
    try:
        yield
    except ProvisioningError:
        raise
    except Exception as e:
        logger.error(
            "Tenant provisioning step failed",
            extra={
                "tenant_id": tenant_id,
                "step": step,
                "error": str(e),
                "error_type": type(e).__name__,
            },
            exc_info=True,
        )
        raise ProvisioningError(step, tenant_id, str(e)) from e


class TenantProvisioningService:
    """Creates the tenant record, domain binding, database and storage tree."""

    def __init__(
        self,
        repository: Optional[TenantRepository] = None,
        database_manager: Optional[TenantDatabaseManager] = None,
        filesystem: Optional[LocalFilesystem] = None,
        config: Optional[TenancyFixtureConfig] = None,
    ):
        """
        Initialize tenant provisioning service.

        Args:
            repository: Persistence layer for tenant and domain rows
            database_manager: Creates file-based tenant databases
            filesystem: Filesystem used for storage directories and seeds
            config: Fixture configuration
        """
        self.config = config or get_fixture_config()
        self.repository = repository or TenantRepository()
        self.database_manager = database_manager or TenantDatabaseManager(self.config)
        self.filesystem = filesystem or LocalFilesystem()

    def provision_tenant(self, token: str) -> Tenant:
        """
        Provision a tenant footprint for one test.

        Steps, in order: insert the tenant row, bind the test domain, create
        the tenant database file (file-based drivers only), create the
        storage tree, copy seed files. Nothing is rolled back here; the next
        run's orphan sweep reclaims whatever a failed setup left behind.

        Args:
            token: Tenant token (becomes the tenant id)

        Returns:
            The provisioned tenant, with its domain binding

        Raises:
            ProvisioningError: If any step fails
        """
        if not token:
            raise ProvisioningError("validate", None, "Tenant token is required")

        logger.info(f"Provisioning tenant: {token}")

        with provisioning_step("insert_tenant", token):
            tenant = self.repository.insert_tenant(token, self.config.tenant_name)

        with provisioning_step("bind_domain", token):
            self.repository.add_domain(tenant, self.config.tenant_domain)

        with provisioning_step("create_database", token):
            self.create_tenant_database(tenant)

        with provisioning_step("create_storage", token):
            self.create_tenant_storage_directories(token)

        with provisioning_step("seed_storage", token):
            self.copy_files_to_tenant_storage(token)

        logger.info(
            "Provisioned tenant",
            extra={"tenant_id": token, "domain": self.config.tenant_domain},
        )
        return tenant

    def create_tenant_database(self, tenant: Tenant) -> Optional[Path]:
        """Create the tenant's database file when the driver is file-based."""
        database_path = resolve_database_path(tenant, self.config)
        if database_path is None:
            logger.debug(
                f"No database file for tenant {tenant.id} "
                f"(driver={self.config.tenant_database_driver})"
            )
            return None

        self.database_manager.create_database(database_path)
        return database_path

    def create_tenant_storage_directories(self, token: str) -> Path:
        """Create the tenant storage tree; existing directories are kept."""
        storage_path = resolve_storage_path(token, self.config)
        if storage_path is None:
            raise ProvisioningError("create_storage", token, "Storage path could not be resolved")

        self.filesystem.make_directories(storage_path)
        for directory in self.config.storage_directories:
            relative = directory.strip("/\\")
            if relative:
                self.filesystem.make_directories(storage_path / relative)
        return storage_path

    def copy_files_to_tenant_storage(self, token: str) -> List[Path]:
        """Copy the configured seed files into the tenant storage tree."""
        seed_dir = self.config.seed_dir
        if seed_dir is None:
            return []

        storage_path = resolve_storage_path(token, self.config)
        copied = self.filesystem.copy_tree(seed_dir, storage_path)
        logger.debug(f"Copied {len(copied)} seed files for tenant {token}")
        return copied
