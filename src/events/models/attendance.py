import typing as t

from django.conf import settings
from django.db import models
from django.utils import timezone

from .event import Event
from .registration import Registration


class AppendOnlyError(Exception):
    """Raised when an audit record would be modified or removed."""


class AttendanceAuditLog(models.Model):
    """Append-only record of every scan and manual attendance change.

    Rows are never updated or deleted through the ORM.
    """

    class Action(models.TextChoices):
        SCAN_SUCCESS = "SCAN_SUCCESS", "Scan success"
        SCAN_DUPLICATE = "SCAN_DUPLICATE", "Scan duplicate"
        SCAN_INVALID = "SCAN_INVALID", "Scan invalid"
        MANUAL_OVERRIDE = "MANUAL_OVERRIDE", "Manual override"

    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name="attendance_logs")
    registration = models.ForeignKey(
        Registration, on_delete=models.SET_NULL, null=True, blank=True, related_name="attendance_logs"
    )
    ticket_code = models.CharField(max_length=32, blank=True, default="")
    scanner = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="+")
    action = models.CharField(max_length=20, choices=Action.choices, db_index=True)
    reason = models.TextField(blank=True, default="")
    payload = models.JSONField(default=dict, blank=True)
    occurred_at = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        ordering = ["-occurred_at", "-id"]

    def __str__(self) -> str:
        return f"{self.action} @ {self.occurred_at:%Y-%m-%d %H:%M:%S}"

    def save(self, *args: t.Any, **kwargs: t.Any) -> None:
        """Insert only."""
        if self.pk is not None:
            raise AppendOnlyError("Attendance audit records cannot be modified.")
        super().save(*args, **kwargs)

    def delete(self, *args: t.Any, **kwargs: t.Any) -> tuple[int, dict[str, int]]:
        """Never allowed."""
        raise AppendOnlyError("Attendance audit records cannot be deleted.")
