"""Request context management using contextvars.

Async-safe storage for the authenticated actor, read by repositories
when writing audit rows.

Usage:
    set_current_user(user_id="user123")
    actor_id = get_current_actor_id()
"""

from contextvars import ContextVar

from hive_admin.shared.enums import ActorType

_current_user_id: ContextVar[str | None] = ContextVar("current_user_id", default=None)
_current_actor_type: ContextVar[ActorType] = ContextVar(
    "current_actor_type", default=ActorType.SYSTEM
)


def set_current_user(
    user_id: str | None,
    actor_type: ActorType = ActorType.USER,
) -> None:
    """Set the current actor for this request (after authentication).

    Raises:
        ValueError: If actor_type is USER and user_id is None or empty.
    """
    if actor_type == ActorType.USER and not user_id:
        raise ValueError("user_id is required when actor_type is USER")
    _current_user_id.set(user_id)
    _current_actor_type.set(actor_type)


def clear_current_user() -> None:
    """Clear the current user context."""
    _current_user_id.set(None)
    _current_actor_type.set(ActorType.SYSTEM)


def get_current_actor_id() -> str | None:
    """Return the current user ID, or None if not authenticated."""
    return _current_user_id.get()


def get_current_actor_type() -> ActorType:
    """Return the current actor type (defaults to SYSTEM if not set)."""
    return _current_actor_type.get()
