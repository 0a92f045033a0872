"""Application services: authorization and the RBAC mutation engines."""
