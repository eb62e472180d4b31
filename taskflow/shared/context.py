"""Request context management using contextvars.

Holds the email of the person performing the current operation. The
hierarchy and workflow engines use it as the sender of notification
records; when unset, settings.notification_sender is used.

Usage:
    set_current_user("alice@example.com")
    sender = get_current_user_email()
"""

from contextvars import ContextVar

_current_user_email: ContextVar[str | None] = ContextVar(
    "current_user_email", default=None
)


def set_current_user(email: str | None) -> None:
    """Set the acting user's email for this request (async-task scoped)."""
    _current_user_email.set(email.strip() if email else None)


def clear_current_user() -> None:
    """Clear the current user context."""
    _current_user_email.set(None)


def get_current_user_email() -> str | None:
    """Return the acting user's email, or None if not set."""
    return _current_user_email.get()


def resolve_sender(default: str) -> str:
    """Return the acting user's email, falling back to default."""
    return _current_user_email.get() or default
