import typing as t

from django.conf import settings
from django.db import models
from django.utils import timezone

from common.models import TimeStampedModel

from .event import Event


class RegistrationQuerySet(models.QuerySet["Registration"]):
    def confirmed(self) -> t.Self:
        """Registrations that occupy a slot against the event's limit."""
        return self.filter(status__in=Registration.CONFIRMED_STATUSES)

    def with_related(self) -> t.Self:
        """Select participant, event and organizer in one go."""
        return self.select_related("participant", "event", "event__organizer")


class Registration(TimeStampedModel):
    class RegistrationStatus(models.TextChoices):
        REGISTERED = "REGISTERED", "Registered"
        CANCELLED = "CANCELLED", "Cancelled"
        REJECTED = "REJECTED", "Rejected"
        COMPLETED = "COMPLETED", "Completed"

    CONFIRMED_STATUSES = (RegistrationStatus.REGISTERED, RegistrationStatus.COMPLETED)

    participant = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="registrations")
    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name="registrations")
    status = models.CharField(
        max_length=16, choices=RegistrationStatus.choices, default=RegistrationStatus.REGISTERED, db_index=True
    )
    team_name = models.CharField(max_length=255, blank=True, default="")
    responses = models.JSONField(default=dict, blank=True)
    attended = models.BooleanField(default=False, db_index=True)
    attended_at = models.DateTimeField(null=True, blank=True)
    attendance_marked_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name="+"
    )
    registered_at = models.DateTimeField(default=timezone.now)

    objects = RegistrationQuerySet.as_manager()

    class Meta:
        ordering = ["-registered_at"]
        constraints = [
            models.UniqueConstraint(fields=["participant", "event"], name="unique_registration_per_participant"),
        ]

    def __str__(self) -> str:
        return f"{self.participant_id} @ {self.event_id} [{self.status}]"

    def file_responses(self) -> dict[str, dict[str, t.Any]]:
        """Responses that reference uploaded blobs, keyed by form field id."""
        return {
            field_id: value
            for field_id, value in (self.responses or {}).items()
            if isinstance(value, dict) and value.get("file_id")
        }
