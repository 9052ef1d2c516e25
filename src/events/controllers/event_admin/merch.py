from uuid import UUID

from django.db.models import QuerySet
from ninja_extra import api_controller, route
from ninja_extra.pagination import PageNumberPaginationExtra, PaginatedResponseSchema, paginate

from common.authentication import FestJWTAuth
from common.schema import ErrorResponse
from common.throttling import WriteThrottle
from events import models, schema
from events.controllers.permissions import ManageEventPermission, OrganizerOrAdminPermission
from events.service import merch_service

from .base import EventAdminBaseController


@api_controller(
    "/organizer/events/{event_id}",
    auth=FestJWTAuth(),
    permissions=[OrganizerOrAdminPermission(), ManageEventPermission()],
    tags=["Organizer Merchandise"],
)
class EventAdminMerchController(EventAdminBaseController):
    """Review queue for merchandise orders."""

    @route.get(
        "/merch-orders",
        url_name="list_merch_orders",
        response=PaginatedResponseSchema[schema.MerchOrderSchema],
    )
    @paginate(PageNumberPaginationExtra, page_size=50)
    def list_orders(self, event_id: UUID, payment_status: str | None = None) -> QuerySet[models.MerchPurchase]:
        """List the orders of a merchandise event, newest first.

        Filter with payment_status=ALL (default) or one of PAYMENT_PENDING, PENDING_APPROVAL,
        APPROVED, REJECTED.
        """
        return merch_service.list_orders(self.get_one(event_id), payment_status)

    @route.post(
        "/merch-orders/{registration_id}/review",
        url_name="review_merch_order",
        response={200: schema.ReviewResultSchema, 400: ErrorResponse, 404: ErrorResponse, 409: ErrorResponse},
        throttle=WriteThrottle(),
    )
    def review_order(self, event_id: UUID, registration_id: UUID, payload: schema.ReviewOrderSchema) -> dict:
        """Approve or reject an order pending approval.

        Approval takes the units from stock (unless they were reserved at purchase), issues the
        ticket and emails it to the participant. If any of that fails, the order is left pending.
        """
        result = merch_service.review_order(
            reviewer=self.user(),
            event=self.get_one(event_id),
            registration_id=registration_id,
            status=payload.status,
            comment=payload.comment,
        )
        return {
            "order": result.purchase,
            "ticket_id": result.ticket.code if result.ticket else None,
            "email_sent": bool(result.email and result.email.sent),
        }
