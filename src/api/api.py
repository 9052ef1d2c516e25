import typing as t

from django.conf import settings
from django.core.exceptions import ValidationError
from django.http import HttpRequest
from ninja.responses import Response
from ninja_extra import NinjaExtraAPI
from ninja_jwt.controller import NinjaJWTDefaultController

from common.schema import ResponseOk, VersionResponse
from common.throttling import AnonDefaultThrottle, UserDefaultThrottle
from events.controllers.event_admin import EVENT_ADMIN_CONTROLLERS
from events.controllers.event_public import EVENT_PUBLIC_CONTROLLERS
from events.controllers.tickets import TicketController
from events.exceptions import FestError
from events.service.event_manager import AdmissionBlockedError

from .exception_handlers import (
    handle_admission_blocked_error,
    handle_django_validation_error,
    handle_fest_error,
    handle_general_exception,
)

api = NinjaExtraAPI(
    title="Fest Backend API",
    docs_url="/docs",
    version=settings.VERSION,
    description=f"Fest participation API {settings.VERSION}",
    app_name=f"fest-api-{settings.VERSION}",
    urls_namespace="api",
    servers=[
        {"url": settings.SERVICE_URL, "description": settings.SERVICE_DESCRIPTION},
    ],
    throttle=[AnonDefaultThrottle(), UserDefaultThrottle()],
)


@api.get("/version", tags=["Version"], response={200: VersionResponse})
def version(request: HttpRequest) -> tuple[int, VersionResponse]:
    """Get the API version.

    Args:
        request: The incoming HTTP request.

    Returns:
        The response status code and message.
    """
    return 200, VersionResponse(version=settings.VERSION)


@api.get("/healthcheck", tags=["Healthcheck"], response={200: ResponseOk})
def healthcheck(request: HttpRequest) -> tuple[int, ResponseOk]:
    """Check the health of the API.

    Args:
        request: The incoming HTTP request.

    Returns:
        The response status code and message.
    """
    return 200, ResponseOk()


api.register_controllers(
    # Auth controllers
    NinjaJWTDefaultController,
    # Organizer controllers
    *EVENT_ADMIN_CONTROLLERS,
    # Participant controllers
    *EVENT_PUBLIC_CONTROLLERS,
    TicketController,
)

EXCEPTION_HANDLERS: dict[type[Exception], t.Callable[..., Response]] = {
    Exception: handle_general_exception,
    ValidationError: handle_django_validation_error,
    FestError: handle_fest_error,
    AdmissionBlockedError: handle_admission_blocked_error,
}

for exc, handler in EXCEPTION_HANDLERS.items():
    api.add_exception_handler(exc, handler)
