from uuid import UUID

from django.db.models import QuerySet
from ninja_extra import api_controller, route
from ninja_extra.pagination import PageNumberPaginationExtra, PaginatedResponseSchema, paginate

from common.authentication import FestJWTAuth
from common.schema import ErrorResponse
from common.throttling import WriteThrottle
from events import models, schema
from events.controllers.permissions import ManageEventPermission, OrganizerOrAdminPermission
from events.service import lifecycle_service

from .base import EventAdminBaseController


@api_controller(
    "/organizer/events",
    auth=FestJWTAuth(),
    permissions=[OrganizerOrAdminPermission(), ManageEventPermission()],
    tags=["Organizer Events"],
)
class EventAdminCoreController(EventAdminBaseController):
    """Event creation, editing and lifecycle transitions."""

    @route.post(
        "/",
        url_name="create_event",
        response={201: schema.EventDetailSchema, 400: ErrorResponse, 403: ErrorResponse},
        throttle=WriteThrottle(),
    )
    def create_event(self, payload: schema.EventCreateSchema) -> tuple[int, models.Event]:
        """Create an event in DRAFT.

        Merchandise events must carry at least one item with at least one variant; item and
        variant ids are derived from their names when omitted. Normal events may carry a
        custom registration form.
        """
        event = lifecycle_service.create_event(self.user(), payload)
        return 201, self.get_one(event.pk)

    @route.get("/", url_name="list_organizer_events", response=PaginatedResponseSchema[schema.EventInListSchema])
    @paginate(PageNumberPaginationExtra, page_size=20)
    def list_events(self) -> QuerySet[models.Event]:
        """List the events you organize; admins see every event."""
        return lifecycle_service.list_managed_events(self.user())

    @route.get(
        "/{uuid:event_id}",
        url_name="get_organizer_event",
        response=schema.EventDetailSchema,
    )
    def get_event(self, event_id: UUID) -> models.Event:
        """Retrieve one of your events, whatever its status."""
        return self.get_one(event_id)

    @route.put(
        "/{uuid:event_id}",
        url_name="edit_event",
        response={200: schema.EventDetailSchema, 400: ErrorResponse, 403: ErrorResponse},
        throttle=WriteThrottle(),
    )
    def update_event(self, event_id: UUID, payload: schema.EventEditSchema) -> models.Event:
        """Update an event.

        DRAFT events accept any change. PUBLISHED events only accept description, tags, a later
        registration deadline, a higher registration limit, and a new form schema while nobody has
        registered yet. Later states are read-only.
        """
        event = lifecycle_service.update_event(self.user(), self.get_one(event_id), payload)
        return self.get_one(event.pk)

    @route.delete(
        "/{uuid:event_id}",
        url_name="delete_event",
        response={204: None, 403: ErrorResponse},
    )
    def delete_event(self, event_id: UUID) -> tuple[int, None]:
        """Delete a DRAFT event."""
        lifecycle_service.delete_event(self.user(), self.get_one(event_id))
        return 204, None

    @route.post(
        "/{uuid:event_id}/publish",
        url_name="publish_event",
        response={200: schema.EventDetailSchema, 409: ErrorResponse, 502: ErrorResponse},
    )
    def publish_event(self, event_id: UUID) -> models.Event:
        """Publish a DRAFT event and announce it on the organizer's Discord webhook, if configured.

        If the announcement cannot be delivered the event stays in DRAFT.
        """
        return lifecycle_service.publish_event(self.user(), self.get_one(event_id))

    @route.post(
        "/{uuid:event_id}/start",
        url_name="start_event",
        response={200: schema.EventDetailSchema, 409: ErrorResponse},
    )
    def start_event(self, event_id: UUID) -> models.Event:
        """Move a PUBLISHED event to ONGOING."""
        return lifecycle_service.start_event(self.user(), self.get_one(event_id))

    @route.post(
        "/{uuid:event_id}/close",
        url_name="close_event",
        response={200: schema.EventDetailSchema, 409: ErrorResponse},
    )
    def close_event(self, event_id: UUID) -> models.Event:
        """Close a PUBLISHED or ONGOING event."""
        return lifecycle_service.close_event(self.user(), self.get_one(event_id))

    @route.post(
        "/{uuid:event_id}/complete",
        url_name="complete_event",
        response={200: schema.EventDetailSchema, 409: ErrorResponse},
    )
    def complete_event(self, event_id: UUID) -> models.Event:
        """Complete an ONGOING or CLOSED event."""
        return lifecycle_service.complete_event(self.user(), self.get_one(event_id))
