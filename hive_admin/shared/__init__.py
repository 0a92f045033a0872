"""Shared cross-cutting code: enums, request context, logging, utilities."""
