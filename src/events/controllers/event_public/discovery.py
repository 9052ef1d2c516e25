from uuid import UUID

from ninja import Query
from ninja_extra import api_controller, route
from ninja_extra.pagination import PageNumberPaginationExtra, PaginatedResponseSchema, paginate

from common.authentication import FestJWTAuth
from events import filters, models, schema
from events.service import search
from events.service.event_manager import EventManager

from .base import EventPublicBaseController


@api_controller("/events", auth=FestJWTAuth(), tags=["Events"])
class EventPublicDiscoveryController(EventPublicBaseController):
    """Browse events and see whether you can join them."""

    @route.get("/", url_name="list_events", response=PaginatedResponseSchema[schema.EventInListSchema])
    @paginate(PageNumberPaginationExtra, page_size=20)
    def list_events(
        self,
        params: filters.EventFilterSchema = Query(...),  # type: ignore[type-arg]
    ) -> list[models.Event]:
        """Browse published events.

        Filter by type, eligibility, status, organizer or upcoming. With search, results are ranked
        by fuzzy relevance over name, description and tags; otherwise they are ordered by start date.
        """
        events = params.filter(self.get_queryset())
        if not params.search:
            return list(events)
        return search.rank(
            params.search,
            events,
            lambda event: search.event_corpus(event.name, event.description, event.tags),
        )

    @route.get("/{uuid:event_id}", url_name="get_event", response=schema.ParticipantEventDetailSchema)
    def get_event(self, event_id: UUID) -> dict:
        """Retrieve an event with the admission check for the current user.

        The eligibility block lists every reason currently keeping you from registering or purchasing.
        """
        event = self.get_one(event_id)
        return {"event": event, "eligibility": EventManager(self.user(), event).check_eligibility()}
