"""Services package for tenant fixtures."""
from .containment import ContainmentValidator, ContainmentVerdict, is_safe_to_delete
from .filesystem import FilesystemError, LocalFilesystem
from .footprint import FixtureState, ReclaimAction, ReclaimOutcome, ReclaimReport
from .identifier import DEFAULT_TOKEN_PREFIX, generate_tenant_token, token_owner_pid
from .path_resolver import (
    database_candidate_paths,
    default_database_path,
    resolve_database_path,
    resolve_storage_path,
    sidecar_paths,
)
from .tenancy_context import TenancyContext, get_current_tenant
from .tenant_provisioning import TenantProvisioningService
from .tenant_reclaimer import TenantReclaimerService

__all__ = [
    "ContainmentValidator",
    "ContainmentVerdict",
    "is_safe_to_delete",
    "FilesystemError",
    "LocalFilesystem",
    "FixtureState",
    "ReclaimAction",
    "ReclaimOutcome",
    "ReclaimReport",
    "DEFAULT_TOKEN_PREFIX",
    "generate_tenant_token",
    "token_owner_pid",
    "database_candidate_paths",
    "default_database_path",
    "resolve_database_path",
    "resolve_storage_path",
    "sidecar_paths",
    "TenancyContext",
    "get_current_tenant",
    "TenantProvisioningService",
    "TenantReclaimerService",
]
