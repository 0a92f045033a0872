"""Role ORM model. Central roles have tenant_id NULL; tenant roles belong to one tenant."""

from sqlalchemy import CheckConstraint, ForeignKey, Index, String, UniqueConstraint, text
from sqlalchemy.orm import Mapped, mapped_column

from hive_admin.domain.enums import RoleScope
from hive_admin.infrastructure.persistence.database import Base
from hive_admin.infrastructure.persistence.models.mixins import (
    CuidMixin,
    TimestampMixin,
    check_in,
)


class Role(CuidMixin, TimestampMixin, Base):
    """Role. Table: role. Unique (tenant_id, key), and unique key among central roles.

    The partial index covers tenant_id IS NULL, where the composite unique
    constraint does not apply (NULLs compare distinct).
    """

    __tablename__ = "role"

    tenant_id: Mapped[str | None] = mapped_column(
        String, ForeignKey("tenant.id", ondelete="CASCADE"), nullable=True, index=True
    )
    key: Mapped[str] = mapped_column(String, nullable=False)
    name: Mapped[str] = mapped_column(String, nullable=False)
    scope: Mapped[str] = mapped_column(String, nullable=False, default=RoleScope.TENANT.value)

    __table_args__ = (
        UniqueConstraint("tenant_id", "key", name="uq_role_tenant_key"),
        Index(
            "uq_role_central_key",
            "key",
            unique=True,
            postgresql_where=text("tenant_id IS NULL"),
            sqlite_where=text("tenant_id IS NULL"),
        ),
        CheckConstraint(check_in("scope", RoleScope.values()), name="role_scope_check"),
        CheckConstraint(
            "(scope = 'CENTRAL' AND tenant_id IS NULL) OR (scope = 'TENANT' AND tenant_id IS NOT NULL)",
            name="role_scope_tenant_check",
        ),
    )
