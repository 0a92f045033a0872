"""Membership ORM model: grants a user one role within one tenant."""

from sqlalchemy import CheckConstraint, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from hive_admin.domain.enums import MembershipStatus
from hive_admin.infrastructure.persistence.database import Base
from hive_admin.infrastructure.persistence.models.mixins import (
    CuidMixin,
    TimestampMixin,
    check_in,
)


class Membership(CuidMixin, TimestampMixin, Base):
    """Membership. Table: membership. Unique (tenant_id, user_id); role_id may be NULL."""

    __tablename__ = "membership"

    tenant_id: Mapped[str] = mapped_column(
        String, ForeignKey("tenant.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[str] = mapped_column(
        String, ForeignKey("app_user.id", ondelete="CASCADE"), nullable=False, index=True
    )
    role_id: Mapped[str | None] = mapped_column(
        String, ForeignKey("role.id", ondelete="SET NULL"), nullable=True
    )
    status: Mapped[str] = mapped_column(
        String, nullable=False, default=MembershipStatus.ACTIVE.value
    )

    __table_args__ = (
        UniqueConstraint("tenant_id", "user_id", name="uq_membership_tenant_user"),
        Index("ix_membership_role_status", "role_id", "status"),
        CheckConstraint(
            check_in("status", MembershipStatus.values()), name="membership_status_check"
        ),
    )
