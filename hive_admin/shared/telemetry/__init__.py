"""Telemetry: logging setup."""
