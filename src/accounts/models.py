import re
import uuid

from django.contrib.auth.models import AbstractUser, UserManager
from django.db import models


class FestUserQueryset(models.QuerySet["FestUser"]):
    """Queryset for FestUser."""

    def participants(self) -> "FestUserQueryset":
        """Users that can register for events."""
        return self.filter(role__in=FestUser.PARTICIPANT_ROLES)

    def organizers(self) -> "FestUserQueryset":
        """Users that own events."""
        return self.filter(role=FestUser.Role.ORGANIZER)


class FestUserManager(UserManager["FestUser"]):
    def get_queryset(self) -> FestUserQueryset:
        """Get queryset for FestUser."""
        return FestUserQueryset(self.model)


class FestUser(AbstractUser):
    class Role(models.TextChoices):
        IIIT_PARTICIPANT = "IIIT_PARTICIPANT", "IIIT participant"
        NON_IIIT_PARTICIPANT = "NON_IIIT_PARTICIPANT", "Non-IIIT participant"
        ORGANIZER = "ORGANIZER", "Organizer"
        ADMIN = "ADMIN", "Admin"

    class AccountStatus(models.TextChoices):
        ACTIVE = "ACTIVE", "Active"
        DISABLED = "DISABLED", "Disabled"
        ARCHIVED = "ARCHIVED", "Archived"

    PARTICIPANT_ROLES = (Role.IIIT_PARTICIPANT, Role.NON_IIIT_PARTICIPANT)

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    role = models.CharField(
        max_length=32, choices=Role.choices, default=Role.NON_IIIT_PARTICIPANT, db_index=True, help_text="Role"
    )
    organizer_name = models.CharField(max_length=255, blank=True, help_text="Public name of the organizing club")
    discord_webhook_url = models.URLField(
        max_length=500, blank=True, help_text="Discord webhook used to announce published events"
    )
    account_status = models.CharField(
        max_length=16, choices=AccountStatus.choices, default=AccountStatus.ACTIVE, db_index=True
    )

    objects = FestUserManager()  # type: ignore[misc]

    class Meta:
        ordering = ["username"]

    @property
    def is_participant(self) -> bool:
        """Participants are the only users that can register or purchase."""
        return self.role in self.PARTICIPANT_ROLES

    @property
    def is_organizer(self) -> bool:
        """Organizers own and run events."""
        return self.role == self.Role.ORGANIZER

    @property
    def is_fest_admin(self) -> bool:
        """Admins govern organizers and may act on any event."""
        return self.role == self.Role.ADMIN or self.is_superuser

    @property
    def display_name(self) -> str:
        """Display name."""
        return self.get_display_name()

    def get_display_name(self) -> str:
        """Returns the organizer name for clubs, otherwise the full name with a username fallback."""
        if self.is_organizer and self.organizer_name:
            return self.organizer_name
        return self.get_full_name() or re.sub(r"(\W|_)+", " ", self.username.split("@")[0]).title()
