from uuid import UUID

from django.db.models import QuerySet
from django.http import HttpResponse
from ninja import Query
from ninja_extra import api_controller, route
from ninja_extra.pagination import PageNumberPaginationExtra, PaginatedResponseSchema, paginate

from common.authentication import FestJWTAuth
from common.schema import ErrorResponse
from common.throttling import WriteThrottle
from events import filters, models, schema
from events.controllers.permissions import ManageEventPermission, OrganizerOrAdminPermission
from events.service import roster_service

from .base import EventAdminBaseController


@api_controller(
    "/organizer/events/{event_id}",
    auth=FestJWTAuth(),
    permissions=[OrganizerOrAdminPermission(), ManageEventPermission()],
    tags=["Organizer Participants"],
)
class EventAdminParticipantsController(EventAdminBaseController):
    """Participant roster, its CSV export and event analytics."""

    @route.get(
        "/participants",
        url_name="list_event_participants",
        response=PaginatedResponseSchema[schema.ParticipantRowSchema],
    )
    @paginate(PageNumberPaginationExtra, page_size=50)
    def list_participants(
        self,
        event_id: UUID,
        params: filters.ParticipantFilterSchema = Query(...),  # type: ignore[type-arg]
    ) -> QuerySet[models.Registration]:
        """List the event's registrations, newest first.

        Filter by status, attendance=present|absent, or search over participant name and email.
        """
        return params.filter(roster_service.roster_queryset(self.get_one(event_id)))

    @route.get(
        "/participants/export",
        url_name="export_event_participants",
        response={403: ErrorResponse, 404: ErrorResponse},
    )
    def export_participants(
        self,
        event_id: UUID,
        params: filters.ParticipantFilterSchema = Query(...),  # type: ignore[type-arg]
    ) -> HttpResponse:
        """Download the roster as CSV; the same filters as the listing apply."""
        event = self.get_one(event_id)
        content = roster_service.roster_csv(params.filter(roster_service.roster_queryset(event)))
        response = HttpResponse(content, content_type="text/csv; charset=utf-8")
        response["Content-Disposition"] = f'attachment; filename="event-{event.pk}-participants.csv"'
        return response

    @route.patch(
        "/participants/{registration_id}/attendance",
        url_name="update_participant_attendance",
        response={200: schema.AttendanceRegistrationSchema, 404: ErrorResponse},
        throttle=WriteThrottle(),
    )
    def update_attendance(
        self, event_id: UUID, registration_id: UUID, payload: schema.ParticipantAttendanceSchema
    ) -> models.Registration:
        """Mark a roster row present or absent. The change is recorded in the attendance audit log."""
        return roster_service.update_attendance(
            event=self.get_one(event_id),
            scanner=self.user(),
            registration_id=registration_id,
            attended=payload.attended,
            reason=payload.reason,
        )

    @route.get("/analytics", url_name="event_analytics", response=schema.EventAnalyticsSchema)
    def analytics(self, event_id: UUID) -> dict:
        """Registration counts by status, attendance, merchandise sales and revenue."""
        event = self.get_one(event_id)
        analytics = roster_service.event_analytics(event)
        return {"event_id": event.pk, **vars(analytics)}
