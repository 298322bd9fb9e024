"""Persistence operations for tenant and domain rows."""
import logging
from datetime import datetime
from typing import List, Optional

from .connection import DatabaseConnectionManager, get_connection_manager
from .models.tenancy import Domain, Tenant

logger = logging.getLogger(__name__)


class TenantRepository:
    """Inserts, looks up and deletes tenant records in the central database."""

    def __init__(self, connection_manager: Optional[DatabaseConnectionManager] = None):
        """Initialize tenant repository.

        Args:
            connection_manager: Connection manager for the central database.
                                Defaults to the global manager.
        """
        self.connection_manager = connection_manager or get_connection_manager()

    def insert_tenant(self, tenant_id: str, name: str, data: Optional[dict] = None) -> Tenant:
        """Insert a tenant row.

        Args:
            tenant_id: Tenant token used as the primary key.
            name: Display name.
            data: Optional free-form tenant data (e.g. ``tenancy_db_name``).

        Returns:
            The persisted (detached) tenant.
        """
        if not tenant_id:
            raise ValueError("Tenant id cannot be empty")

        tenant = Tenant(id=tenant_id, name=name, data=dict(data or {}), domains=[])
        with self.connection_manager.get_session() as session:
            session.add(tenant)
            session.flush()

        logger.debug(f"Inserted tenant row: {tenant_id}")
        return tenant

    def add_domain(self, tenant: Tenant, domain: str) -> Domain:
        """Bind a domain to a tenant.

        The binding is also appended to ``tenant.domains`` so the detached
        tenant reflects what was persisted.
        """
        if not domain:
            raise ValueError("Domain cannot be empty")

        binding = Domain(domain=domain, tenant_id=tenant.id)
        with self.connection_manager.get_session() as session:
            session.add(binding)
            session.flush()

        tenant.domains.append(binding)
        logger.debug(f"Bound domain {domain} to tenant {tenant.id}")
        return binding

    def lookup(self, tenant_id: str) -> Optional[Tenant]:
        """Get a tenant by id, with its domains loaded."""
        with self.connection_manager.get_session() as session:
            return session.get(Tenant, tenant_id)

    def delete_tenant(self, tenant_id: str) -> bool:
        """Delete a tenant and its domains.

        Returns:
            True if a row was deleted, False if it did not exist.
        """
        with self.connection_manager.get_session() as session:
            tenant = session.get(Tenant, tenant_id)
            if tenant is None:
                return False
            session.delete(tenant)

        logger.debug(f"Deleted tenant row: {tenant_id}")
        return True

    def list_tenant_ids(self, prefix: str, older_than: Optional[datetime] = None) -> List[str]:
        """List ids of tenants whose id starts with ``prefix``.

        Args:
            prefix: Required id prefix; must not be empty.
            older_than: Only include tenants created before this (naive UTC) time.
        """
        if not prefix:
            raise ValueError("Prefix cannot be empty")

        with self.connection_manager.get_session() as session:
            query = session.query(Tenant.id).filter(Tenant.id.startswith(prefix, autoescape=True))
            if older_than is not None:
                query = query.filter(Tenant.created_at < older_than)
            return [row[0] for row in query.order_by(Tenant.id).all()]
