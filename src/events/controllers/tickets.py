from django.db.models import QuerySet
from ninja_extra import api_controller, route
from ninja_extra.pagination import PageNumberPaginationExtra, PaginatedResponseSchema, paginate

from common.authentication import FestJWTAuth
from common.controllers import UserAwareController
from common.schema import ErrorResponse
from events import models, schema
from events.service import ticket_service


@api_controller("/tickets", auth=FestJWTAuth(), tags=["Tickets"])
class TicketController(UserAwareController):
    @route.get("/", url_name="list_my_tickets", response=PaginatedResponseSchema[schema.TicketSchema])
    @paginate(PageNumberPaginationExtra, page_size=20)
    def list_tickets(self) -> QuerySet[models.Ticket]:
        """Your tickets, newest first."""
        return ticket_service.list_participant_tickets(self.user())

    @route.get(
        "/{code}",
        url_name="get_ticket",
        response={200: schema.TicketSchema, 403: ErrorResponse, 404: ErrorResponse},
    )
    def get_ticket(self, code: str) -> models.Ticket:
        """Retrieve a ticket with its QR code.

        Visible to the ticket holder, the event's organizer and admins.
        """
        return ticket_service.get_ticket_for_viewer(code, self.user())
