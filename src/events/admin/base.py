"""Link helpers shared by the events admin classes."""

import typing as t

from django.urls import reverse
from django.utils.html import format_html


class ParticipantLinkMixin:
    """Mixin to add a link to the participant."""

    def participant_link(self, obj: t.Any) -> str | None:
        participant = getattr(obj, "participant", None)
        if participant is None:
            return None
        url = reverse("admin:accounts_festuser_change", args=[participant.id])
        return format_html('<a href="{}">{}</a>', url, participant.username)

    participant_link.short_description = "Participant"  # type: ignore[attr-defined]


class EventLinkMixin:
    """Mixin to add a link to an event."""

    def event_link(self, obj: t.Any) -> str | None:
        if not hasattr(obj, "event") or not obj.event:
            return None
        url = reverse("admin:events_event_change", args=[obj.event.id])
        return format_html('<a href="{}">{}</a>', url, obj.event.name)

    event_link.short_description = "Event"  # type: ignore[attr-defined]
