import typing as t

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import Q

from accounts.models import FestUser
from common.models import TimeStampedModel
from events.exceptions import FestValidationError
from events.form_schema import FormField, parse_form_schema


class EventQuerySet(models.QuerySet["Event"]):
    def with_organizer(self) -> t.Self:
        """Select the organizer as well."""
        return self.select_related("organizer")

    def with_merch(self) -> t.Self:
        """Prefetch merchandise items and their variants."""
        return self.prefetch_related("merch_items__variants")

    def visible_to_participants(self) -> t.Self:
        """Events a participant may browse: anything past DRAFT whose organizer account is active."""
        return self.exclude(status=Event.EventStatus.DRAFT).filter(
            organizer__account_status=FestUser.AccountStatus.ACTIVE
        )

    def for_organizer(self, user: FestUser) -> t.Self:
        """Events the user may manage: own events for organizers, everything for admins."""
        if user.is_fest_admin:
            return self
        if user.is_organizer:
            return self.filter(organizer=user)
        return self.none()

    def search(self, query: str) -> t.Self:
        """Cheap pre-filter used before ranking."""
        return self.filter(Q(name__icontains=query) | Q(description__icontains=query))


class Event(TimeStampedModel):
    class EventStatus(models.TextChoices):
        DRAFT = "DRAFT", "Draft"
        PUBLISHED = "PUBLISHED", "Published"
        ONGOING = "ONGOING", "Ongoing"
        CLOSED = "CLOSED", "Closed"
        COMPLETED = "COMPLETED", "Completed"

    class EventType(models.TextChoices):
        NORMAL = "NORMAL", "Normal"
        MERCHANDISE = "MERCHANDISE", "Merchandise"

    class Eligibility(models.TextChoices):
        ALL = "ALL", "All participants"
        IIIT_ONLY = "IIIT_ONLY", "IIIT participants only"
        NON_IIIT_ONLY = "NON_IIIT_ONLY", "Non-IIIT participants only"

    OPEN_STATUSES = (EventStatus.PUBLISHED, EventStatus.ONGOING)

    organizer = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="organized_events")
    name = models.CharField(max_length=255, db_index=True)
    description = models.TextField(blank=True, default="")
    event_type = models.CharField(max_length=16, choices=EventType.choices, default=EventType.NORMAL, db_index=True)
    status = models.CharField(max_length=16, choices=EventStatus.choices, default=EventStatus.DRAFT, db_index=True)
    eligibility = models.CharField(max_length=16, choices=Eligibility.choices, default=Eligibility.ALL)
    registration_deadline = models.DateTimeField()
    start_date = models.DateTimeField(db_index=True)
    end_date = models.DateTimeField()
    registration_limit = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    registration_fee = models.DecimalField(
        max_digits=10, decimal_places=2, default=0, validators=[MinValueValidator(0)]
    )
    tags = models.JSONField(default=list, blank=True)
    custom_form_schema = models.JSONField(default=list, blank=True)

    objects = EventQuerySet.as_manager()

    class Meta:
        ordering = ["start_date"]
        constraints = [
            models.CheckConstraint(
                condition=Q(registration_deadline__lte=models.F("start_date"))
                & Q(start_date__lte=models.F("end_date")),
                name="event_dates_ordered",
            ),
        ]

    def __str__(self) -> str:
        return self.name

    def clean(self) -> None:
        """Enforce date ordering and type-specific content rules."""
        super().clean()
        errors: dict[str, list[str]] = {}
        if self.registration_deadline and self.start_date and self.registration_deadline > self.start_date:
            errors.setdefault("registration_deadline", []).append(
                "Registration deadline must be before the start date."
            )
        if self.start_date and self.end_date and self.start_date > self.end_date:
            errors.setdefault("end_date", []).append("End date must be after the start date.")
        if self.event_type == self.EventType.MERCHANDISE and self.custom_form_schema:
            errors.setdefault("custom_form_schema", []).append("Merchandise events cannot have a form schema.")
        elif self.custom_form_schema:
            try:
                parse_form_schema(self.custom_form_schema)
            except FestValidationError as e:
                errors.setdefault("custom_form_schema", []).append(e.message)
        if not isinstance(self.tags, list) or any(not isinstance(tag, str) for tag in self.tags):
            errors.setdefault("tags", []).append("Tags must be a list of strings.")
        if errors:
            raise DjangoValidationError(errors)

    @property
    def is_merchandise(self) -> bool:
        return self.event_type == self.EventType.MERCHANDISE

    @property
    def form_fields(self) -> list[FormField]:
        """The parsed, ordered form schema."""
        return parse_form_schema(self.custom_form_schema)
