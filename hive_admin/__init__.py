"""hive-admin: multi-tenant RBAC authorization and mutation engine."""
