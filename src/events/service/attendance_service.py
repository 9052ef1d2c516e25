"""Attendance verification: QR scans, manual overrides and the live summary.

Every outcome, including rejected scans, lands in the append-only audit log.
"""

import typing as t
from dataclasses import dataclass
from uuid import UUID

import orjson
import structlog
from django.conf import settings
from django.db.models import QuerySet
from django.utils import timezone
from django.utils.translation import gettext as _

from accounts.models import FestUser
from events.exceptions import ConflictError, FestValidationError, NotFoundError
from events.models import AttendanceAuditLog, Event, Registration, Ticket

logger = structlog.get_logger(__name__)

Action = AttendanceAuditLog.Action


@dataclass(frozen=True)
class AttendanceSummary:
    total_registrations: int
    attended_count: int
    unattended_count: int
    recent_logs: list[AttendanceAuditLog]


def parse_scan_payload(raw: t.Any) -> dict[str, t.Any]:
    """Accept the scanned payload as an object or as its JSON text."""
    if not raw:
        raise FestValidationError(_("qr_payload is required"), field="qr_payload")
    if isinstance(raw, str):
        try:
            raw = orjson.loads(raw)
        except orjson.JSONDecodeError as e:
            raise FestValidationError(_("qr_payload must be valid JSON"), field="qr_payload") from e
    if not isinstance(raw, dict):
        raise FestValidationError(_("qr_payload must be an object"), field="qr_payload")
    return raw


def write_audit_log(
    *,
    event: Event,
    scanner: FestUser,
    action: str,
    reason: str = "",
    registration: Registration | None = None,
    ticket_code: str = "",
    payload: dict[str, t.Any] | None = None,
) -> AttendanceAuditLog:
    """Append an audit record."""
    entry = AttendanceAuditLog.objects.create(
        event=event,
        registration=registration,
        ticket_code=ticket_code,
        scanner=scanner,
        action=action,
        reason=reason,
        payload=payload or {},
    )
    logger.info(
        "attendance_logged",
        event_id=str(event.pk),
        action=action,
        registration_id=str(registration.pk) if registration else None,
    )
    return entry


def _reject_scan(
    event: Event, scanner: FestUser, payload: dict[str, t.Any], *, reason: str, message: str, ticket_code: str = ""
) -> t.NoReturn:
    write_audit_log(
        event=event,
        scanner=scanner,
        action=Action.SCAN_INVALID,
        reason=reason,
        ticket_code=ticket_code,
        payload=payload,
    )
    raise FestValidationError(message, code=Action.SCAN_INVALID)


def scan(*, event: Event, scanner: FestUser, qr_payload: t.Any) -> Registration:
    """Mark attendance from a scanned ticket payload.

    Raises:
        FestValidationError: for a malformed payload (not logged) or an inconsistent one (logged as SCAN_INVALID).
        ConflictError: if attendance was already marked (logged as SCAN_DUPLICATE).
    """
    payload = parse_scan_payload(qr_payload)
    ticket_code = str(payload.get("ticket_id") or "").strip()
    registration_id = str(payload.get("registration_id") or "").strip()
    payload_event_id = str(payload.get("event_id") or "").strip()
    if not ticket_code or not registration_id or not payload_event_id:
        raise FestValidationError(
            _("qr_payload must contain ticket_id, registration_id and event_id"), field="qr_payload"
        )

    if payload_event_id != str(event.pk):
        _reject_scan(
            event,
            scanner,
            payload,
            reason="QR payload event does not match route event",
            message=_("Invalid QR payload for this event"),
        )

    ticket = Ticket.objects.filter(code=ticket_code, event=event).first()
    if ticket is None or str(ticket.registration_id) != registration_id:
        _reject_scan(
            event,
            scanner,
            payload,
            reason="Ticket not found for this event",
            message=_("Invalid ticket QR payload"),
            ticket_code=ticket_code,
        )

    registration = (
        Registration.objects.select_related("participant").filter(pk=ticket.registration_id, event=event).first()
    )
    if registration is None:
        _reject_scan(
            event,
            scanner,
            payload,
            reason="Registration not found for scanned ticket",
            message=_("Registration not found for scanned ticket"),
            ticket_code=ticket_code,
        )

    now = timezone.now()
    marked = Registration.objects.filter(pk=registration.pk, attended=False).update(
        attended=True, attended_at=now, attendance_marked_by=scanner
    )
    if not marked:
        write_audit_log(
            event=event,
            scanner=scanner,
            action=Action.SCAN_DUPLICATE,
            reason="Duplicate scan attempt",
            registration=registration,
            ticket_code=ticket_code,
            payload=payload,
        )
        raise ConflictError(_("Attendance already marked for this registration"), code=Action.SCAN_DUPLICATE)

    registration.refresh_from_db()
    write_audit_log(
        event=event,
        scanner=scanner,
        action=Action.SCAN_SUCCESS,
        reason="Attendance marked by QR scan",
        registration=registration,
        ticket_code=ticket_code,
        payload=payload,
    )
    return registration


def manual_override(
    *, event: Event, scanner: FestUser, registration_id: UUID, reason: str, attended: bool = True
) -> Registration:
    """Set attendance by hand, whatever the current state is.

    Raises:
        FestValidationError: if the reason is blank.
        NotFoundError: if the registration does not belong to the event.
    """
    reason = (reason or "").strip()
    if not reason:
        raise FestValidationError(_("reason is required for manual override"), field="reason")
    registration = Registration.objects.select_related("participant").filter(pk=registration_id, event=event).first()
    if registration is None:
        raise NotFoundError(_("Registration not found for this event"))

    registration.attended = attended
    registration.attended_at = timezone.now() if attended else None
    registration.attendance_marked_by = scanner if attended else None
    registration.save(update_fields=["attended", "attended_at", "attendance_marked_by", "updated_at"])

    write_audit_log(
        event=event,
        scanner=scanner,
        action=Action.MANUAL_OVERRIDE,
        reason=reason,
        registration=registration,
        payload={"attended": attended},
    )
    return registration


def recent_logs(event: Event, limit: int | None = None) -> QuerySet[AttendanceAuditLog]:
    limit = limit or settings.ATTENDANCE_SUMMARY_LOG_LIMIT
    return AttendanceAuditLog.objects.select_related("scanner").filter(event=event).order_by("-occurred_at", "-id")[
        :limit
    ]


def live_summary(event: Event) -> AttendanceSummary:
    """Totals over all registrations of the event plus the latest audit entries."""
    registrations = Registration.objects.filter(event=event)
    total = registrations.count()
    attended = registrations.filter(attended=True).count()
    return AttendanceSummary(
        total_registrations=total,
        attended_count=attended,
        unattended_count=total - attended,
        recent_logs=list(recent_logs(event)),
    )
