"""Observability middleware for context enrichment."""

import typing as t
import uuid

import structlog
from django.conf import settings
from django.http import HttpRequest, HttpResponse

# URL kwargs worth carrying on every log line of a request
ROUTE_CONTEXT_KEYS = ("event_id", "registration_id", "code", "field_id")


class StructlogContextMiddleware:
    """Binds request metadata to the structlog context.

    Every log line emitted while serving a request carries the request id, so that
    all steps of a registration or review can be followed together. The id is taken
    from an incoming ``X-Request-ID`` header when present and echoed back.
    """

    def __init__(self, get_response: t.Callable[[HttpRequest], HttpResponse]) -> None:
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        if not settings.ENABLE_OBSERVABILITY:
            return self.get_response(request)

        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.path,
            ip_address=client_ip(request),
        )
        # Bearer-token users are bound later by common.authentication.FestJWTAuth
        if hasattr(request, "user") and request.user.is_authenticated:
            structlog.contextvars.bind_contextvars(user_id=str(request.user.id))

        try:
            response = self.get_response(request)
        finally:
            structlog.contextvars.clear_contextvars()

        response["X-Request-ID"] = request_id
        return response

    def process_view(
        self,
        request: HttpRequest,
        view_func: t.Callable[..., HttpResponse],
        view_args: tuple[t.Any, ...],
        view_kwargs: dict[str, t.Any],
    ) -> None:
        """Bind the resolved event, registration or ticket to the context."""
        if not settings.ENABLE_OBSERVABILITY:
            return None
        route_context = {key: str(view_kwargs[key]) for key in ROUTE_CONTEXT_KEYS if key in view_kwargs}
        if route_context:
            structlog.contextvars.bind_contextvars(**route_context)
        return None


def client_ip(request: HttpRequest) -> str:
    """The first X-Forwarded-For hop, falling back to REMOTE_ADDR."""
    x_forwarded_for = request.META.get("HTTP_X_FORWARDED_FOR")
    if x_forwarded_for:
        return str(x_forwarded_for.split(",")[0].strip())
    return str(request.META.get("REMOTE_ADDR", "unknown"))
