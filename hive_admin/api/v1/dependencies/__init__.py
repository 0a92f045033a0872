"""Presentation-layer dependency injection (composition root).

Routes depend only on these; repositories and services are built here.
"""

from hive_admin.api.v1.dependencies.auth import get_current_user_id
from hive_admin.api.v1.dependencies.db import get_db, get_db_for_write
from hive_admin.api.v1.dependencies.rbac import (
    get_authorization_service,
    get_rbac_services,
    require_any_permission,
)
from hive_admin.api.v1.dependencies.tenant import get_tenant_scope

__all__ = [
    "get_authorization_service",
    "get_current_user_id",
    "get_db",
    "get_db_for_write",
    "get_rbac_services",
    "get_tenant_scope",
    "require_any_permission",
]
