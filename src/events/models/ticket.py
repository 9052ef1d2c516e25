from django.conf import settings
from django.db import models
from django.utils import timezone

from common.models import TimeStampedModel

from .event import Event
from .registration import Registration


class Ticket(TimeStampedModel):
    """The credential issued for a confirmed registration."""

    code = models.CharField(max_length=32, unique=True)
    registration = models.OneToOneField(Registration, on_delete=models.CASCADE, related_name="ticket")
    participant = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="tickets")
    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name="tickets")
    qr_payload = models.JSONField(default=dict)
    issued_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["-issued_at"]

    def __str__(self) -> str:
        return self.code
