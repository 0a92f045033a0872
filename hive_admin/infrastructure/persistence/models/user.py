"""User ORM model. Global identity; tenant access comes from memberships."""

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from hive_admin.infrastructure.persistence.database import Base
from hive_admin.infrastructure.persistence.models.mixins import CuidMixin, TimestampMixin


class User(CuidMixin, TimestampMixin, Base):
    """User. Table: app_user. Email is unique and stored lower-cased."""

    __tablename__ = "app_user"

    email: Mapped[str] = mapped_column(String, unique=True, nullable=False, index=True)
    name: Mapped[str | None] = mapped_column(String, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
