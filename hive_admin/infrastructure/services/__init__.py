"""Infrastructure implementations of application service interfaces."""

from hive_admin.infrastructure.services.audit_service import AuditService
from hive_admin.infrastructure.services.factory import (
    RbacServices,
    build_authorization_service,
    build_rbac_services,
)
from hive_admin.infrastructure.services.notification_service import (
    LogOnlyNotificationService,
    NotificationDispatcher,
)
from hive_admin.infrastructure.services.permission_resolver import PermissionResolver
from hive_admin.infrastructure.services.rbac_provisioning_service import (
    RbacProvisioningService,
)
from hive_admin.infrastructure.services.tenant_resolver import TenantResolver

__all__ = [
    "AuditService",
    "LogOnlyNotificationService",
    "NotificationDispatcher",
    "PermissionResolver",
    "RbacProvisioningService",
    "RbacServices",
    "TenantResolver",
    "build_authorization_service",
    "build_rbac_services",
]
