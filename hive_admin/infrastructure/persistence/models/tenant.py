"""Tenant and TenantDomain ORM models."""

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from hive_admin.domain.enums import TenantStatus
from hive_admin.infrastructure.persistence.database import Base
from hive_admin.infrastructure.persistence.models.mixins import (
    CuidMixin,
    TimestampMixin,
    check_in,
)


class Tenant(CuidMixin, TimestampMixin, Base):
    """Tenant. Table: tenant. Status: ACTIVE, SUSPENDED. One slug marks the central tenant."""

    __tablename__ = "tenant"

    slug: Mapped[str] = mapped_column(String, unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    status: Mapped[str] = mapped_column(
        String, nullable=False, default=TenantStatus.ACTIVE.value, index=True
    )

    __table_args__ = (
        CheckConstraint(check_in("status", TenantStatus.values()), name="tenant_status_check"),
    )


class TenantDomain(CuidMixin, TimestampMixin, Base):
    """Host name owned by a tenant. Table: tenant_domain. Resolves the tenant of a request."""

    __tablename__ = "tenant_domain"

    tenant_id: Mapped[str] = mapped_column(
        String, ForeignKey("tenant.id", ondelete="CASCADE"), nullable=False, index=True
    )
    domain: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    is_primary: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
