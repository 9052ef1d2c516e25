"""Access to files participants uploaded through registration forms."""

import typing as t
from uuid import UUID

from django.utils.translation import gettext as _

from accounts.models import FestUser
from common.models import StoredBlob
from events.exceptions import NotFoundError, PermissionDeniedError
from events.models import Registration
from events.service.registration_service import can_access_registration


def get_accessible_registration(user: FestUser, registration_id: UUID) -> Registration:
    """A registration the user may inspect.

    Raises:
        NotFoundError: if the registration does not exist.
        PermissionDeniedError: if the user is neither its participant, the event's organizer nor an admin.
    """
    registration = Registration.objects.with_related().filter(pk=registration_id).first()
    if registration is None:
        raise NotFoundError(_("Registration not found."))
    if not can_access_registration(user, registration):
        raise PermissionDeniedError(_("You are not allowed to access files of this registration."))
    return registration


def list_registration_files(user: FestUser, registration_id: UUID) -> list[dict[str, t.Any]]:
    """File responses of a registration, one entry per form field."""
    registration = get_accessible_registration(user, registration_id)
    return [
        {
            "field_id": field_id,
            "file_id": value["file_id"],
            "file_name": value.get("file_name", ""),
            "mime_type": value.get("mime_type", ""),
            "size": value.get("size", 0),
        }
        for field_id, value in registration.file_responses().items()
    ]


def get_registration_file(user: FestUser, registration_id: UUID, field_id: str) -> StoredBlob:
    """The stored blob behind one file response.

    Raises:
        NotFoundError: if the field has no file or the blob is gone.
    """
    registration = get_accessible_registration(user, registration_id)
    value = registration.file_responses().get(field_id)
    if value is None:
        raise NotFoundError(_("No file uploaded for this field."))
    blob = StoredBlob.objects.filter(pk=value["file_id"]).first()
    if blob is None:
        raise NotFoundError(_("File not found."))
    return blob
