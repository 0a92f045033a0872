"""Classification of driver errors surfaced through SQLAlchemy."""

from sqlalchemy.exc import IntegrityError

_UNIQUE_MARKERS = ("unique", "duplicate key")


def is_unique_violation(exc: IntegrityError) -> bool:
    """Return True if exc is a unique-constraint violation (asyncpg or sqlite wording)."""
    message = str(exc.orig if exc.orig is not None else exc).lower()
    return any(marker in message for marker in _UNIQUE_MARKERS)
