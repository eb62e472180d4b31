"""HTTP middleware. Import and use from taskflow.main."""

from taskflow.middleware.user_context import UserContextMiddleware

__all__ = ["UserContextMiddleware"]
