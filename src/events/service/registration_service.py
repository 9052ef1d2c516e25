"""The registration saga for NORMAL events.

Steps: upload attached files, validate responses, create the registration
(under the admission lock), issue the ticket, send the confirmation email.
A failure at any step compensates everything done before it.
"""

import functools
import typing as t
import uuid
from dataclasses import dataclass

import orjson
import structlog
from django.core.files.uploadedfile import UploadedFile
from django.utils.translation import gettext as _

from accounts.models import FestUser
from common.blobs import BlobStorageError, delete_blob_or_schedule_retry, upload_blob
from common.models import StoredBlob
from events.exceptions import FestValidationError, PermissionDeniedError, StorageError
from events.form_schema import FileField, FormField, validate_responses
from events.models import Event, Registration, Ticket
from events.service import notification_service, ticket_service
from events.service.event_manager import EventManager
from events.service.saga import Saga

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class RegistrationResult:
    registration: Registration
    ticket: Ticket
    email: notification_service.EmailDelivery


def assert_participant(user: FestUser) -> None:
    """Only participants may register or purchase."""
    if not user.is_participant:
        raise PermissionDeniedError(_("Only participants can register for events."))


def parse_responses_input(raw: t.Any) -> dict[str, t.Any]:
    """Accept responses as a JSON object or a JSON-encoded string.

    Raises:
        FestValidationError: if the value is neither.
    """
    if raw is None or raw == "":
        return {}
    if isinstance(raw, str):
        try:
            parsed = orjson.loads(raw)
        except orjson.JSONDecodeError as e:
            raise FestValidationError(_("responses must be valid JSON object"), field="responses") from e
        if not isinstance(parsed, dict):
            raise FestValidationError(_("responses must be valid JSON object"), field="responses")
        return parsed
    if isinstance(raw, dict):
        return raw
    raise FestValidationError(_("responses must be an object"), field="responses")


def match_uploads_to_fields(
    fields: list[FormField], files: dict[str, UploadedFile]
) -> list[tuple[FileField, UploadedFile]]:
    """Pair uploaded files with file fields and check their type and size.

    A file is accepted under the field id or under ``file_<field id>``.

    Raises:
        FestValidationError: for an unexpected upload name or a file violating its field.
    """
    file_fields = [field for field in fields if isinstance(field, FileField)]
    supported = {name for field in file_fields for name in (field.id, f"file_{field.id}")}
    for name in files:
        if name not in supported:
            raise FestValidationError(_("Unexpected file field: {name}").format(name=name), field=name)

    pairs: list[tuple[FileField, UploadedFile]] = []
    for field in file_fields:
        upload = files.get(field.id) or files.get(f"file_{field.id}")
        if upload is None:
            continue
        field.check_file(upload.content_type or "", upload.size or 0)
        pairs.append((field, upload))
    return pairs


def store_upload(file: UploadedFile, *, metadata: dict[str, t.Any]) -> StoredBlob:
    """Put a participant's upload into the blob store.

    Raises:
        StorageError: if the blob store could not write the file.
    """
    try:
        return upload_blob(file, metadata=metadata)
    except BlobStorageError as e:
        raise StorageError(_("Could not store the uploaded file."), code="UPLOAD_FAILED") from e


def file_response_for(blob: StoredBlob) -> dict[str, t.Any]:
    """The response value stored for an uploaded file."""
    return {
        "kind": "file",
        "file_id": str(blob.pk),
        "file_name": blob.name,
        "mime_type": blob.mime_type,
        "size": blob.size,
    }


def assert_file_references(fields: list[FormField], responses: dict[str, t.Any]) -> None:
    """File responses must point at a stored blob with the same name, type and size.

    Raises:
        FestValidationError: if a referenced blob is missing or does not match.
    """
    for field in fields:
        value = responses.get(field.id)
        if not isinstance(field, FileField) or not isinstance(value, dict):
            continue
        blob = StoredBlob.objects.filter(pk=_as_uuid(value["file_id"])).first()
        if blob is None or (blob.name, blob.mime_type, blob.size) != (
            value["file_name"],
            value["mime_type"],
            value["size"],
        ):
            raise FestValidationError(
                _("{label} references an unknown file").format(label=field.label), field=field.id
            )


def _as_uuid(value: t.Any) -> uuid.UUID | None:
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


def can_access_registration(user: FestUser, registration: Registration) -> bool:
    """The participant who owns it, the event's organizer, or any admin."""
    if user.is_fest_admin or registration.participant_id == user.pk:
        return True
    return user.is_organizer and registration.event.organizer_id == user.pk


def delete_registration(registration: Registration) -> None:
    """Compensation: remove a registration created by a failed saga."""
    deleted, _details = Registration.objects.filter(pk=registration.pk).delete()
    logger.info("registration_deleted", registration_id=str(registration.pk), deleted=bool(deleted))


def register_for_event(
    *,
    participant: FestUser,
    event: Event,
    responses: t.Any = None,
    team_name: str = "",
    files: dict[str, UploadedFile] | None = None,
) -> RegistrationResult:
    """Register a participant for a NORMAL event.

    Raises:
        PermissionDeniedError: if the caller is not a participant.
        FestValidationError: for merchandise events or invalid responses and files.
        AdmissionBlockedError: if a gate blocks the participant.
        StorageError: if an attached file could not be stored.
        DeliveryFailedError: if the confirmation email cannot be sent (everything is rolled back).
    """
    assert_participant(participant)
    if event.is_merchandise:
        raise FestValidationError(_("Use the purchase endpoint for merchandise events."))

    manager = EventManager(participant, event)
    manager.assert_admissible()

    fields = event.form_fields
    submitted = parse_responses_input(responses)
    uploads = match_uploads_to_fields(fields, files or {})

    with Saga("registration", event_id=str(event.pk), participant_id=str(participant.pk)) as saga:
        file_responses: dict[str, t.Any] = {}
        for field, upload in uploads:
            blob = saga.step(
                f"upload_{field.id}",
                functools.partial(
                    store_upload,
                    upload,
                    metadata={"field_id": field.id, "participant_id": str(participant.pk), "event_id": str(event.pk)},
                ),
                compensate=lambda blob: delete_blob_or_schedule_retry(blob.pk),
            )
            file_responses[field.id] = file_response_for(blob)

        cleaned = validate_responses(fields, {**submitted, **file_responses})
        assert_file_references(fields, cleaned)

        registration = saga.step(
            "create_registration",
            lambda: manager.admit(
                lambda locked_event: Registration.objects.create(
                    participant=participant,
                    event=locked_event,
                    status=Registration.RegistrationStatus.REGISTERED,
                    team_name=(team_name or "").strip(),
                    responses=cleaned,
                )
            ),
            compensate=delete_registration,
        )
        ticket = saga.step(
            "issue_ticket",
            lambda: ticket_service.issue_ticket(registration),
            compensate=lambda ticket: ticket_service.delete_ticket(ticket.pk),
        )
        email = saga.step(
            "send_confirmation",
            lambda: notification_service.send_ticket_email(
                event=event, registration=registration, ticket=ticket, flow="registration"
            ),
        )

    logger.info("registration_completed", registration_id=str(registration.pk), ticket_code=ticket.code)
    return RegistrationResult(registration=registration, ticket=ticket, email=email)
