"""Database models for tenant fixtures."""
from .tenancy import Base, Domain, Tenant

__all__ = ["Base", "Domain", "Tenant"]
