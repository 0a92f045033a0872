"""Shared utilities (id generation, UTC time)."""
