"""Database package for tenant fixtures."""
from .connection import (
    DatabaseConnectionManager,
    get_connection_manager
)
from .tenant_manager import TenantDatabaseManager
from .tenant_repository import TenantRepository

__all__ = [
    "DatabaseConnectionManager",
    "get_connection_manager",
    "TenantDatabaseManager",
    "TenantRepository",
]
