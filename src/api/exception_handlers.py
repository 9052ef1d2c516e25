"""Exception handlers for the API."""

import traceback
import typing as t

import structlog
from django.conf import settings
from django.core.exceptions import ValidationError
from django.http import HttpRequest
from ninja.responses import Response

from events.exceptions import FestError
from events.service.event_manager import AdmissionBlockedError

logger = structlog.get_logger(__name__)


def handle_general_exception(request: HttpRequest, exc: Exception | t.Type[Exception]) -> Response:
    """Handle a general exception.

    Args:
        request: The incoming HTTP request.
        exc: The exception.

    Returns:
        The response.
    """
    logger.exception("INTERNAL_SERVER_ERROR", exc_info=True, method=request.method, path=request.path)
    data = {"detail": "Internal Server Error."}
    is_staff = getattr(request, "user", None) and request.user.is_staff
    if settings.DEBUG or is_staff:  # pragma: no cover
        data["traceback"] = traceback.format_exc()
    return Response(status=500, data=data)


def handle_django_validation_error(request: HttpRequest, exc: ValidationError | t.Type[ValidationError]) -> Response:
    """Handle a validation error.

    Args:
        request: The incoming HTTP request.
        exc: The exception.
    """
    logger.warning("VALIDATION_ERROR", path=request.path)
    if hasattr(exc, "error_dict"):
        error_dict = {k: [ee for e in v for ee in e] for k, v in exc.error_dict.items()}
    else:
        error_dict = {"__all__": list(exc.messages)}  # type: ignore[union-attr]
    return Response(status=400, data={"errors": error_dict})


def error_body(exc: FestError) -> dict[str, t.Any]:
    data: dict[str, t.Any] = {"detail": exc.message}
    if exc.code:
        data["code"] = exc.code
    if exc.field:
        data["field"] = exc.field
    return data


def handle_fest_error(request: HttpRequest, exc: FestError) -> Response:
    """Render a domain error with its status, message, code and field."""
    log = logger.error if exc.status_code >= 500 else logger.info
    log("FEST_ERROR", error=type(exc).__name__, status=exc.status_code, code=exc.code, path=request.path)
    return Response(status=exc.status_code, data=error_body(exc))


def handle_admission_blocked_error(request: HttpRequest, exc: AdmissionBlockedError) -> Response:
    """Handle a blocked admission; the body names the blocking reason."""
    logger.info("ADMISSION_BLOCKED", reason=exc.reason, event_id=str(exc.event_id), path=request.path)
    return Response(status=exc.status_code, data={**error_body(exc), "reason": exc.reason})
