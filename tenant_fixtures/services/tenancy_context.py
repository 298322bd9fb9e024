"""Ambient tenant used by request routing while a test runs."""
import logging
from contextvars import ContextVar, Token
from typing import Optional

from tenant_fixtures.db.models import Tenant

logger = logging.getLogger(__name__)

_current_tenant: ContextVar[Optional[Tenant]] = ContextVar("current_tenant", default=None)


class TenancyContext:
    """Activates and deactivates the current tenant.

    Both calls are idempotent: activating the tenant that is already active
    does nothing, and deactivating when nothing is active is a no-op.
    """

    def __init__(self, var: ContextVar = _current_tenant):
        self._var = var
        self._reset_token: Optional[Token] = None

    @property
    def tenant(self) -> Optional[Tenant]:
        """Currently active tenant, if any."""
        return self._var.get()

    @property
    def tenant_id(self) -> Optional[str]:
        tenant = self.tenant
        return tenant.id if tenant is not None else None

    @property
    def initialized(self) -> bool:
        return self.tenant is not None

    def activate(self, tenant: Tenant) -> None:
        """Make ``tenant`` the ambient tenant."""
        if tenant is None:
            raise ValueError("Cannot activate tenancy without a tenant")

        current = self.tenant
        if current is not None and current.id == tenant.id:
            return
        if current is not None:
            # Switching tenants keeps the first reset point
            self._var.set(tenant)
        else:
            self._reset_token = self._var.set(tenant)
        logger.info(f"Tenancy initialized: tenant_id={tenant.id}")

    def deactivate(self) -> None:
        """Clear the ambient tenant."""
        if self._reset_token is not None:
            try:
                self._var.reset(self._reset_token)
            except ValueError:
                # Token was created in a different context; clear instead
                self._var.set(None)
            self._reset_token = None
        elif self._var.get() is not None:
            self._var.set(None)
        else:
            return
        logger.info("Tenancy ended")


def get_current_tenant() -> Optional[Tenant]:
    """Tenant activated by the running test, if any."""
    return _current_tenant.get()
