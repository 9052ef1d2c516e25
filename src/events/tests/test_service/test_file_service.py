import typing as t
import uuid

import pytest
from django.core.files.uploadedfile import SimpleUploadedFile

from accounts.models import FestUser
from common.blobs import upload_blob
from common.models import StoredBlob
from events.exceptions import NotFoundError, PermissionDeniedError
from events.models import Event, Registration
from events.service import file_service
from events.service.registration_service import file_response_for

pytestmark = pytest.mark.django_db


@pytest.fixture
def resume_blob() -> StoredBlob:
    return upload_blob(SimpleUploadedFile("cv.pdf", b"%PDF-1.4 cv", content_type="application/pdf"))


@pytest.fixture
def registration_with_file(
    participant: FestUser, event_factory: t.Callable[..., Event], resume_blob: StoredBlob
) -> Registration:
    event = event_factory(
        custom_form_schema=[{"id": "resume", "type": "file", "label": "Resume", "allowed_mime_types": []}]
    )
    return Registration.objects.create(
        participant=participant, event=event, responses={"resume": file_response_for(resume_blob), "note": "hi"}
    )


def test_list_registration_files(
    participant: FestUser, registration_with_file: Registration, resume_blob: StoredBlob
) -> None:
    files = file_service.list_registration_files(participant, registration_with_file.pk)

    assert files == [
        {
            "field_id": "resume",
            "file_id": str(resume_blob.pk),
            "file_name": "cv.pdf",
            "mime_type": "application/pdf",
            "size": len(b"%PDF-1.4 cv"),
        }
    ]


def test_organizer_and_admin_can_download(
    organizer: FestUser, admin_user: FestUser, registration_with_file: Registration, resume_blob: StoredBlob
) -> None:
    for user in (organizer, admin_user):
        assert file_service.get_registration_file(user, registration_with_file.pk, "resume") == resume_blob


def test_strangers_cannot_access_files(
    other_participant: FestUser, other_organizer: FestUser, registration_with_file: Registration
) -> None:
    for user in (other_participant, other_organizer):
        with pytest.raises(PermissionDeniedError):
            file_service.list_registration_files(user, registration_with_file.pk)


def test_missing_field_or_registration(participant: FestUser, registration_with_file: Registration) -> None:
    with pytest.raises(NotFoundError, match="No file uploaded"):
        file_service.get_registration_file(participant, registration_with_file.pk, "note")
    with pytest.raises(NotFoundError, match="Registration not found"):
        file_service.list_registration_files(participant, uuid.uuid4())


def test_deleted_blob_is_not_found(
    participant: FestUser, registration_with_file: Registration, resume_blob: StoredBlob
) -> None:
    StoredBlob.objects.filter(pk=resume_blob.pk).delete()

    with pytest.raises(NotFoundError, match="File not found"):
        file_service.get_registration_file(participant, registration_with_file.pk, "resume")
