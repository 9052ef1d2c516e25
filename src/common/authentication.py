import typing as t

import structlog
from django.http import HttpRequest
from ninja_jwt.authentication import JWTAuth


class FestJWTAuth(JWTAuth):
    """JWT authentication that binds the caller to the logging context.

    The request middleware runs before the token is validated, so the user id
    and role are bound here, right after successful JWT validation.

    Usage:
        @api_controller("/events", auth=FestJWTAuth())
        class EventController:
            ...
    """

    def authenticate(self, request: HttpRequest, token: str) -> t.Any:
        """Authenticate the request and enrich the structlog context.

        Raises:
            AuthenticationFailed: If authentication fails
            InvalidToken: If the token is invalid
        """
        user = super().authenticate(request, token)

        if user:
            structlog.contextvars.bind_contextvars(user_id=str(user.id), user_role=getattr(user, "role", None))

        return user
