from uuid import UUID

from ninja import Form
from ninja_extra import api_controller, route

from common.authentication import FestJWTAuth
from common.schema import ErrorResponse
from common.throttling import WriteThrottle
from events import schema
from events.controllers.permissions import ParticipantPermission
from events.service import merch_service, registration_service

from .base import EventPublicBaseController


@api_controller(
    "/events",
    auth=FestJWTAuth(),
    permissions=[ParticipantPermission()],
    tags=["Events"],
    throttle=WriteThrottle(),
)
class EventPublicRegistrationController(EventPublicBaseController):
    """Registering for events and buying merchandise."""

    @route.post(
        "/{uuid:event_id}/register",
        url_name="register_for_event",
        response={
            201: schema.RegistrationResultSchema,
            400: ErrorResponse,
            403: ErrorResponse,
            409: ErrorResponse,
            502: ErrorResponse,
        },
    )
    def register(self, event_id: UUID, payload: Form[schema.RegistrationFormSchema]) -> tuple[int, dict]:
        """Register for a normal event.

        Send multipart/form-data with `responses` as a JSON object keyed by form field id, an
        optional `team_name`, and one file part per file field (named after the field id). A
        ticket is issued and emailed; if the email cannot be sent nothing is kept.
        """
        result = registration_service.register_for_event(
            participant=self.user(),
            event=self.get_one(event_id),
            responses=payload.responses,
            team_name=payload.team_name,
            files=self.uploaded_files(),
        )
        return 201, {
            "registration": result.registration,
            "ticket_id": result.ticket.code,
            "email_sent": result.email.sent,
        }

    @route.post(
        "/{uuid:event_id}/purchase",
        url_name="purchase_merchandise",
        response={
            201: schema.PurchaseResultSchema,
            400: ErrorResponse,
            403: ErrorResponse,
            409: ErrorResponse,
            502: ErrorResponse,
        },
    )
    def purchase(self, event_id: UUID, payload: schema.PurchaseCreateSchema) -> tuple[int, dict]:
        """Buy merchandise; the units are taken from stock right away and the ticket is emailed."""
        result = merch_service.purchase_merchandise(
            participant=self.user(),
            event=self.get_one(event_id),
            item_id=payload.item_id,
            variant_id=payload.variant_id,
            quantity=payload.quantity,
        )
        return 201, {
            "registration_id": result.registration.pk,
            "ticket_id": result.ticket.code,
            "email_sent": result.email.sent,
            "order": result.purchase,
        }

    @route.post(
        "/{uuid:event_id}/orders",
        url_name="place_merch_order",
        response={201: schema.MerchPurchaseSchema, 400: ErrorResponse, 403: ErrorResponse, 409: ErrorResponse},
    )
    def place_order(self, event_id: UUID, payload: Form[schema.OrderCreateSchema]) -> tuple[int, object]:
        """Order merchandise paid outside the platform.

        Attach the payment proof as a `payment_proof` file part now or upload it later. Stock is
        taken and the ticket issued when an organizer approves the order.
        """
        purchase = merch_service.place_order(
            participant=self.user(),
            event=self.get_one(event_id),
            item_id=payload.item_id,
            variant_id=payload.variant_id,
            quantity=payload.quantity,
            payment_proof=self.uploaded_files().get("payment_proof"),
        )
        return 201, purchase
