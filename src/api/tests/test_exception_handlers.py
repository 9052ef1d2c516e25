"""Tests for the domain error handlers."""

import uuid

import orjson
from django.test import RequestFactory

from api.exception_handlers import handle_admission_blocked_error, handle_fest_error
from events.exceptions import ConflictError, FestValidationError, StorageError
from events.service.event_manager import AdmissionBlockedError, Reasons


def test_fest_error_body(rf: RequestFactory) -> None:
    """Test that message, code and field are rendered when set."""
    response = handle_fest_error(rf.get("/"), FestValidationError("Invalid item_id", field="item_id"))

    assert response.status_code == 400
    assert orjson.loads(response.content) == {"detail": "Invalid item_id", "field": "item_id"}


def test_fest_error_uses_default_code(rf: RequestFactory) -> None:
    """Test that server-side errors keep their status and default code."""
    response = handle_fest_error(rf.get("/"), StorageError("Could not store the uploaded file."))

    assert response.status_code == 500
    assert orjson.loads(response.content) == {
        "detail": "Could not store the uploaded file.",
        "code": "STORAGE_ERROR",
    }


def test_conflict_with_code(rf: RequestFactory) -> None:
    response = handle_fest_error(rf.post("/"), ConflictError("Already marked", code="SCAN_DUPLICATE"))

    assert response.status_code == 409
    assert orjson.loads(response.content)["code"] == "SCAN_DUPLICATE"


def test_admission_blocked_body_names_the_reason(rf: RequestFactory) -> None:
    """Test that a blocked admission carries its reason next to the code."""
    exc = AdmissionBlockedError(Reasons.REGISTRATION_FULL, uuid.uuid4())

    response = handle_admission_blocked_error(rf.post("/"), exc)

    assert response.status_code == exc.status_code
    body = orjson.loads(response.content)
    assert body["reason"] == "REGISTRATION_FULL"
    assert body["code"] == "REGISTRATION_FULL"
    assert body["detail"] == "Registration limit reached."
