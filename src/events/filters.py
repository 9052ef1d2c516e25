import typing as t
from uuid import UUID

from django.db.models import Q
from django.utils import timezone
from ninja import Field, FilterSchema

from events.models import Event, Registration


class EventFilterSchema(FilterSchema):
    organizer: UUID | None = Field(None, q="organizer_id")  # type: ignore[call-overload]
    event_type: Event.EventType | None = None
    eligibility: Event.Eligibility | None = None
    status: Event.EventStatus | None = None
    upcoming: bool | None = None
    search: str | None = None

    def filter_upcoming(self, upcoming: bool | None) -> Q:
        """Helper to find events that have not ended yet."""
        if upcoming:
            return Q(end_date__gte=timezone.now())
        return Q()

    def filter_search(self, search: str | None) -> Q:
        """Search is ranked in Python after filtering, see ``events.service.search``."""
        return Q()


class ParticipantFilterSchema(FilterSchema):
    status: Registration.RegistrationStatus | None = None
    attendance: t.Literal["present", "absent"] | None = None
    search: str | None = None

    def filter_attendance(self, attendance: str | None) -> Q:
        """present or absent; anything else keeps every row."""
        if attendance == "present":
            return Q(attended=True)
        if attendance == "absent":
            return Q(attended=False)
        return Q()

    def filter_search(self, search: str | None) -> Q:
        """Every word must appear in the participant's first name, last name or email."""
        q = Q()
        for term in (search or "").split():
            q &= (
                Q(participant__first_name__icontains=term)
                | Q(participant__last_name__icontains=term)
                | Q(participant__email__icontains=term)
            )
        return q
