"""Permission and RolePermission ORM models (RBAC)."""

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from hive_admin.infrastructure.persistence.database import Base
from hive_admin.infrastructure.persistence.models.mixins import CreatedAtMixin, CuidMixin


class Permission(CuidMixin, CreatedAtMixin, Base):
    """Permission. Table: permission. Key is globally unique (e.g. roles.create, manage_users)."""

    __tablename__ = "permission"

    key: Mapped[str] = mapped_column(String, unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String, nullable=False)


class RolePermission(Base):
    """Role-permission join. Table: role_permission. Identity is the pair."""

    __tablename__ = "role_permission"

    role_id: Mapped[str] = mapped_column(
        String, ForeignKey("role.id", ondelete="CASCADE"), primary_key=True
    )
    permission_id: Mapped[str] = mapped_column(
        String, ForeignKey("permission.id", ondelete="CASCADE"), primary_key=True, index=True
    )
