from uuid import UUID

from django.http import FileResponse
from ninja import File
from ninja.files import UploadedFile
from ninja_extra import api_controller, route

from common.authentication import FestJWTAuth
from common.schema import ErrorResponse
from common.models import StoredBlob
from common.throttling import WriteThrottle
from events import models, schema
from events.controllers.permissions import ParticipantPermission
from events.service import file_service, merch_service

from .base import EventPublicBaseController


def _download(blob: StoredBlob) -> FileResponse:
    return FileResponse(blob.file.open("rb"), as_attachment=True, filename=blob.name, content_type=blob.mime_type)


@api_controller("/events/registrations", auth=FestJWTAuth(), tags=["Registrations"])
class EventPublicOrdersController(EventPublicBaseController):
    """Payment proofs and uploaded registration files.

    Participants reach their own registrations; organizers those of their events; admins all.
    """

    @route.post(
        "/{uuid:registration_id}/payment-proof",
        url_name="upload_payment_proof",
        response={200: schema.MerchPurchaseSchema, 400: ErrorResponse, 403: ErrorResponse, 409: ErrorResponse},
        permissions=[ParticipantPermission()],
        throttle=WriteThrottle(),
    )
    def upload_payment_proof(
        self, registration_id: UUID, payment_proof: File[UploadedFile]
    ) -> models.MerchPurchase:
        """Upload the payment proof (PDF, PNG or JPEG) for your order.

        Allowed while the order awaits payment or after a rejection; the order then waits for
        the organizer's review.
        """
        return merch_service.submit_payment_proof(
            participant=self.user(), registration_id=registration_id, file=payment_proof
        )

    @route.get(
        "/{uuid:registration_id}/payment-proof",
        url_name="get_payment_proof",
        response={200: schema.MerchPurchaseSchema, 403: ErrorResponse, 404: ErrorResponse},
    )
    def get_payment_proof(
        self, registration_id: UUID, download: bool = False
    ) -> models.MerchPurchase | FileResponse:
        """The order with its payment proof metadata, or the proof file itself with download=true."""
        purchase = merch_service.get_payment_proof(user=self.user(), registration_id=registration_id)
        if download:
            return _download(purchase.payment_proof)  # type: ignore[arg-type]
        return purchase

    @route.get(
        "/{uuid:registration_id}/files",
        url_name="list_registration_files",
        response={200: list[schema.RegistrationFileSchema], 403: ErrorResponse, 404: ErrorResponse},
    )
    def list_files(self, registration_id: UUID) -> list[dict]:
        """Files uploaded through the event's registration form."""
        return file_service.list_registration_files(self.user(), registration_id)

    @route.get(
        "/{uuid:registration_id}/files/{field_id}",
        url_name="download_registration_file",
        response={403: ErrorResponse, 404: ErrorResponse},
    )
    def download_file(self, registration_id: UUID, field_id: str) -> FileResponse:
        """Download the file uploaded for one form field."""
        return _download(file_service.get_registration_file(self.user(), registration_id, field_id))
