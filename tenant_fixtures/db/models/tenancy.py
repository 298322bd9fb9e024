"""Tenant and domain models for the central (landlord) database."""
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, DateTime, ForeignKey, Integer, JSON, String, Index, event
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Tenant(Base):
    """Tenant record; the primary key is the tenant token."""

    __tablename__ = "tenants"

    id = Column(String(255), primary_key=True, nullable=False)
    name = Column(String(255), nullable=False)
    data = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime, nullable=False, default=_utcnow)
    updated_at = Column(DateTime, nullable=False, default=_utcnow, onupdate=_utcnow)

    # Relationships
    domains = relationship(
        "Domain",
        back_populates="tenant",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
    )

    @property
    def database_name_override(self) -> Optional[str]:
        """Explicit database name stored on the tenant, if any."""
        data = self.data or {}
        value = data.get("tenancy_db_name")
        return str(value) if value is not None else None

    def database_name(self, prefix: str, suffix: str) -> str:
        """Logical database name for this tenant."""
        override = self.database_name_override
        if override is not None:
            return override
        return f"{prefix}{self.id}{suffix}"

    def __repr__(self) -> str:
        """String representation for debugging."""
        return f"<Tenant(id={self.id}, name={self.name})>"


class Domain(Base):
    """Network identity (host binding) that routes requests to a tenant."""

    __tablename__ = "domains"
    __table_args__ = (
        Index("idx_domains_domain", "domain"),
        Index("idx_domains_tenant_id", "tenant_id"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    domain = Column(String(255), nullable=False)
    tenant_id = Column(
        String(255),
        ForeignKey("tenants.id", ondelete="CASCADE", onupdate="CASCADE"),
        nullable=False,
    )
    created_at = Column(DateTime, nullable=False, default=_utcnow)

    # Relationships
    tenant = relationship("Tenant", back_populates="domains")

    def __repr__(self) -> str:
        """String representation for debugging."""
        return f"<Domain(id={self.id}, domain={self.domain}, tenant_id={self.tenant_id})>"


@event.listens_for(Tenant, "before_update", propagate=True)
def receive_before_update_tenant(mapper, connection, target):
    """Update updated_at timestamp before update."""
    target.updated_at = _utcnow()
