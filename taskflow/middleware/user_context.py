"""Acting-user context middleware.

Sets the current user's email in context from the X-User-Email header so
notification records carry the actor as sender. Authentication is not
handled here.
"""

from __future__ import annotations

from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from taskflow.shared.context import clear_current_user, set_current_user

USER_EMAIL_HEADER = "X-User-Email"


class UserContextMiddleware(BaseHTTPMiddleware):
    """Set the acting user's email for the duration of the request."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        set_current_user(request.headers.get(USER_EMAIL_HEADER))
        try:
            return await call_next(request)
        finally:
            clear_current_user()
